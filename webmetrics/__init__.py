"""WebMetrics — website health probe and SEO analysis service."""

__version__ = "1.0.0"

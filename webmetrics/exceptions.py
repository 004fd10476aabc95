"""
webmetrics/exceptions.py
Errors raised by the probe engine. Only InvalidURLError ever reaches the caller;
FetchError is recovered into a "down" result by the orchestrator.
"""


class WebMetricsError(Exception):
    """Base class for probe errors."""


class InvalidURLError(WebMetricsError):
    """The submitted URL is missing or not a parseable absolute http(s) URL."""


class FetchError(WebMetricsError):
    """The primary page fetch failed (DNS, connection, timeout, non-HTTP reply)."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")

from .fetcher import fetch_with_timing
from .ssl_checker import check_ssl
from .site_files import check_robots_txt, check_sitemap
from .pagespeed import fetch_pagespeed_insights
from .seo_analyzer import analyze_seo
from .monitor import run_probe, normalize_url, site_origin

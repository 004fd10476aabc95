"""
webmetrics/services/monitor.py
Probe orchestrator: normalize the URL, fan out every probe concurrently,
classify the site and assemble one MonitoringResult.

InvalidURLError escapes before any probe starts. A FetchError or a probe that
misses the deadline degrades into a complete "down" result.
"""
import re
import random
import asyncio
import logging
import aiohttp
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlparse

from .fetcher import fetch_with_timing
from .ssl_checker import check_ssl
from .site_files import check_robots_txt, check_sitemap
from .pagespeed import fetch_pagespeed_insights
from .seo_analyzer import analyze_seo
from .score_calculator import classify_status, error_rate_for, estimate_performance
from ..config import Settings, get_settings
from ..exceptions import FetchError, InvalidURLError
from ..models import (
    DataSource, DataSources, FetchResult, MonitoringResult, PageSpeedResult,
    PerformanceBreakdown, SEOAnalysis, SSLInfo, WebsiteMetrics, WebsiteStatus,
)

logger = logging.getLogger(__name__)

FETCH_FAILED = "Failed to fetch website"
SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def normalize_url(raw: Optional[str]) -> str:
    """Prefix https:// when no scheme is given; reject anything that is not an absolute http(s) URL."""
    if raw is None or not str(raw).strip():
        raise InvalidURLError("URL is required")
    url = str(raw).strip()
    if not url.lower().startswith(("http://", "https://")):
        if SCHEME_RE.match(url):
            raise InvalidURLError(f"Unsupported URL scheme: {raw}")
        url = "https://" + url

    try:
        p = urlparse(url)
        hostname, _port = p.hostname, p.port
    except ValueError:
        raise InvalidURLError(f"Invalid URL: {raw}")
    if p.scheme.lower() not in ("http", "https") or not hostname or any(c.isspace() for c in p.netloc):
        raise InvalidURLError(f"Invalid URL: {raw}")
    return url


def site_origin(url: str) -> str:
    """scheme://host[:port], without credentials, path or query."""
    p = urlparse(url)
    host = p.hostname
    if ":" in host:
        host = f"[{host}]"
    if p.port:
        host = f"{host}:{p.port}"
    return f"{p.scheme.lower()}://{host}"


def _settled(task: asyncio.Task, fallback: Any, name: str) -> Any:
    """Result of a finished probe, or ``fallback`` if it failed or was cancelled."""
    if task.cancelled():
        logger.warning("%s cancelled at probe deadline", name)
        return fallback
    exc = task.exception()
    if exc is not None:
        logger.warning("%s failed: %s", name, exc)
        return fallback
    return task.result()


def _fetch_outcome(task: asyncio.Task, url: str):
    """FetchResult, or the FetchError describing why there is none. Other errors propagate."""
    if task.cancelled():
        return FetchError(url, "probe deadline exceeded")
    exc = task.exception()
    if isinstance(exc, FetchError):
        return exc
    return task.result()


def _down_result(url: str, ssl: SSLInfo, robots_txt: bool, sitemap: bool, reason: str) -> MonitoringResult:
    website = WebsiteMetrics(
        url=url,
        timestamp=datetime.now(timezone.utc),
        status=WebsiteStatus.DOWN,
        ssl_certificate=ssl,
        error_rate=error_rate_for(WebsiteStatus.DOWN),
        data_sources=DataSources(
            ssl=DataSource.ESTIMATED if ssl.expiry_date else DataSource.UNAVAILABLE,
        ),
        error=reason,
    )
    seo = SEOAnalysis(robots_txt=robots_txt, sitemap=sitemap, issues=[FETCH_FAILED])
    return MonitoringResult(website=website, seo=seo)


def _build_result(
    url: str,
    fetched: FetchResult,
    ssl: SSLInfo,
    robots_txt: bool,
    sitemap: bool,
    pagespeed: Optional[PageSpeedResult],
    rng: Optional[random.Random],
) -> MonitoringResult:
    timing = fetched.timing
    status = classify_status(fetched.status_code, timing.total)

    seo = analyze_seo(fetched.body, url, fetched.headers)
    seo = seo.model_copy(update={"robots_txt": robots_txt, "sitemap": sitemap})

    if pagespeed is not None:
        scores, source = pagespeed, DataSource.MEASURED
    else:
        scores, source = estimate_performance(timing.total, rng), DataSource.ESTIMATED

    website = WebsiteMetrics(
        url=url,
        timestamp=datetime.now(timezone.utc),
        status=status,
        http_status_code=fetched.status_code,
        response_time=timing.total,
        ttfb=timing.ttfb,
        dns_lookup_time=timing.dns_lookup,
        tcp_connect_time=timing.tcp_connect,
        tls_handshake_time=timing.tls_handshake,
        ssl_certificate=ssl,
        performance_score=scores.performance_score,
        error_rate=error_rate_for(status),
        core_web_vitals=scores.core_web_vitals,
        mobile_score=scores.mobile_score,
        desktop_score=scores.desktop_score,
        accessibility_score=scores.accessibility_score,
        best_practices_score=scores.best_practices_score,
        lighthouse_seo_score=scores.seo_score,
        performance_breakdown=PerformanceBreakdown(
            dns=timing.dns_lookup,
            connect=timing.tcp_connect,
            ttfb=timing.ttfb,
            download=timing.download,
        ),
        data_sources=DataSources(
            ssl=DataSource.ESTIMATED if ssl.expiry_date else DataSource.UNAVAILABLE,
            scores=source,
            core_web_vitals=source,
        ),
    )
    return MonitoringResult(website=website, seo=seo)


async def run_probe(
    raw_url: Optional[str],
    settings: Optional[Settings] = None,
    session: Optional[aiohttp.ClientSession] = None,
    rng: Optional[random.Random] = None,
) -> MonitoringResult:
    """
    Probe one website end to end.

    Fetch, SSL, robots.txt, sitemap.xml and PageSpeed run concurrently; probes
    still pending at ``probe_deadline_seconds`` are cancelled and replaced by
    their failure value. SEO analysis runs only after a successful fetch.
    """
    settings = settings or get_settings()
    url = normalize_url(raw_url)
    origin = site_origin(url)

    if session is None:
        async with aiohttp.ClientSession(headers={"User-Agent": settings.user_agent}) as own_session:
            return await _probe(url, origin, own_session, settings, rng)
    return await _probe(url, origin, session, settings, rng)


async def _probe(
    url: str,
    origin: str,
    session: aiohttp.ClientSession,
    settings: Settings,
    rng: Optional[random.Random],
) -> MonitoringResult:
    timeout = settings.request_timeout_seconds
    tasks = {
        "fetch": asyncio.ensure_future(fetch_with_timing(url, session, timeout=timeout)),
        "ssl": asyncio.ensure_future(check_ssl(url, session, timeout=timeout, rng=rng)),
        "robots": asyncio.ensure_future(check_robots_txt(origin, session, timeout=timeout)),
        "sitemap": asyncio.ensure_future(check_sitemap(origin, session, timeout=timeout)),
        "pagespeed": asyncio.ensure_future(fetch_pagespeed_insights(
            url, session,
            api_key=settings.pagespeed_api_key,
            timeout=settings.pagespeed_timeout_seconds,
            include_seo=settings.pagespeed_include_seo,
        )),
    }

    try:
        await asyncio.wait(tasks.values(), timeout=settings.probe_deadline_seconds)
    finally:
        # Runs on the deadline and when the caller itself is cancelled.
        pending = [t for t in tasks.values() if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    fetched = _fetch_outcome(tasks["fetch"], url)
    ssl = _settled(tasks["ssl"], SSLInfo(), "ssl check")
    robots_txt = _settled(tasks["robots"], False, "robots.txt probe")
    sitemap = _settled(tasks["sitemap"], False, "sitemap.xml probe")
    pagespeed = _settled(tasks["pagespeed"], None, "PageSpeed Insights")

    if isinstance(fetched, FetchError):
        logger.warning("Site down: %s", fetched)
        return _down_result(url, ssl, robots_txt, sitemap, fetched.reason)

    return _build_result(url, fetched, ssl, robots_txt, sitemap, pagespeed, rng)

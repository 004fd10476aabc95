"""
PageSpeed Insights (Lighthouse) adapter.

Never raises: every failure (no API key, non-2xx, timeout, unparsable body)
resolves to None, which callers treat as "unavailable".
"""
import asyncio
import logging
import aiohttp
from typing import Any, Dict, List, Optional
from ..models import CoreWebVitals, PageSpeedResult
from ..config import get_settings

logger = logging.getLogger(__name__)

API_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
CATEGORIES = ["performance", "accessibility", "best-practices"]
STRATEGIES = ("mobile", "desktop")


def _category_score(categories: Dict[str, Any], name: str) -> Optional[int]:
    """Lighthouse scores are 0–1 fractions; convert to 0–100."""
    score = (categories.get(name) or {}).get("score")
    if not isinstance(score, (int, float)):
        return None
    return max(0, min(100, round(score * 100)))


def _numeric_value(audits: Dict[str, Any], name: str) -> Optional[float]:
    value = (audits.get(name) or {}).get("numericValue")
    if not isinstance(value, (int, float)) or value < 0:
        return None
    return value


def parse_pagespeed_response(data: Dict[str, Any]) -> PageSpeedResult:
    """Extract category scores and Core Web Vitals from a runPagespeed response."""
    lighthouse = data.get("lighthouseResult") or {}
    categories = lighthouse.get("categories") or {}
    audits = lighthouse.get("audits") or {}

    lcp = _numeric_value(audits, "largest-contentful-paint")
    fid = _numeric_value(audits, "max-potential-fid")
    cls = _numeric_value(audits, "cumulative-layout-shift")

    performance = _category_score(categories, "performance")
    return PageSpeedResult(
        performance_score=performance,
        accessibility_score=_category_score(categories, "accessibility"),
        best_practices_score=_category_score(categories, "best-practices"),
        seo_score=_category_score(categories, "seo"),
        mobile_score=performance,
        desktop_score=performance,
        core_web_vitals=CoreWebVitals(
            lcp=round(lcp) if lcp is not None else None,
            fid=round(fid) if fid is not None else None,
            cls=round(cls, 3) if cls is not None else None,
        ),
    )


async def run_pagespeed(
    url: str,
    session: aiohttp.ClientSession,
    strategy: str = "mobile",
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
    include_seo: bool = False,
) -> Optional[PageSpeedResult]:
    """Run one Lighthouse analysis for a single strategy. No ``api_key`` means unavailable."""
    if not api_key:
        return None
    if timeout is None:
        timeout = get_settings().pagespeed_timeout_seconds

    categories: List[str] = CATEGORIES + (["seo"] if include_seo else [])
    params = [("url", url), ("key", api_key), ("strategy", strategy)]
    params += [("category", c) for c in categories]

    try:
        async with session.get(
            API_URL,
            params=params,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as response:
            if response.status >= 300:
                logger.warning("PageSpeed API request failed (%s) for %s: HTTP %s", strategy, url, response.status)
                return None
            data = await response.json(content_type=None)
        return parse_pagespeed_response(data)
    except asyncio.TimeoutError:
        logger.warning("PageSpeed API timed out after %ss (%s) for %s", timeout, strategy, url)
    except aiohttp.ClientError as e:
        logger.warning("PageSpeed API error (%s) for %s: %s", strategy, url, str(e)[:120])
    except (ValueError, TypeError, AttributeError) as e:
        logger.warning("Could not parse PageSpeed response (%s) for %s: %s", strategy, url, e)
    return None


async def fetch_pagespeed_insights(
    url: str,
    session: aiohttp.ClientSession,
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
    include_seo: bool = False,
) -> Optional[PageSpeedResult]:
    """
    Run the mobile and desktop strategies concurrently and merge them.

    mobile/desktop scores come from their own run; everything else from the
    mobile run, or the desktop run when mobile is unavailable. The key is
    taken only from ``api_key``; callers resolve it from their Settings.
    """
    if not api_key:
        logger.warning("PageSpeed API key not configured, using estimated scores")
        return None

    mobile, desktop = await asyncio.gather(*(
        run_pagespeed(url, session, strategy=s, api_key=api_key, timeout=timeout, include_seo=include_seo)
        for s in STRATEGIES
    ))
    primary = mobile or desktop
    if primary is None:
        return None
    return primary.model_copy(update={
        "mobile_score": mobile.performance_score if mobile else None,
        "desktop_score": desktop.performance_score if desktop else None,
    })

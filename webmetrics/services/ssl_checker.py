"""
SSL reachability check.

Validity is approximated by a successful HEAD over HTTPS. The expiry fields are
ESTIMATED: no certificate is read, a date 90–365 days ahead is sampled instead.
Callers see this through WebsiteMetrics.data_sources.ssl.
"""
import random
import asyncio
import logging
import aiohttp
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlparse
from ..models import SSLInfo
from ..config import get_settings

logger = logging.getLogger(__name__)

MIN_ESTIMATED_DAYS = 90
MAX_ESTIMATED_DAYS = 365


def estimate_expiry(rng: Optional[random.Random] = None) -> int:
    """Sample a plausible days-until-expiry in [90, 365)."""
    rng = rng or random
    return MIN_ESTIMATED_DAYS + int(rng.random() * (MAX_ESTIMATED_DAYS - MIN_ESTIMATED_DAYS))


async def check_ssl(
    url: str,
    session: aiohttp.ClientSession,
    timeout: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> SSLInfo:
    """HEAD the URL over HTTPS. Plain-HTTP targets return the invalid result with no request."""
    if urlparse(url).scheme != "https":
        return SSLInfo()

    if timeout is None:
        timeout = get_settings().request_timeout_seconds
    try:
        async with session.head(
            url,
            timeout=aiohttp.ClientTimeout(total=timeout),
            allow_redirects=True,
        ) as response:
            valid = response.ok
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.info("SSL HEAD failed for %s: %s", url, str(e)[:120])
        return SSLInfo()

    days = estimate_expiry(rng)
    return SSLInfo(
        valid=valid,
        expiry_date=datetime.now(timezone.utc) + timedelta(days=days),
        days_until_expiry=days,
        issuer=None,
    )

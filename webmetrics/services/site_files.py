"""
robots.txt / sitemap.xml existence probes.
Any failure is reported as "not present".
"""
import asyncio
import logging
import aiohttp
from typing import Optional
from ..config import get_settings

logger = logging.getLogger(__name__)


async def _exists(url: str, session: aiohttp.ClientSession, timeout: Optional[float]) -> bool:
    if timeout is None:
        timeout = get_settings().request_timeout_seconds
    try:
        async with session.head(
            url,
            timeout=aiohttp.ClientTimeout(total=timeout),
            allow_redirects=True,
        ) as response:
            return response.ok
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.debug("HEAD %s failed: %s", url, str(e)[:120])
        return False


async def check_robots_txt(origin: str, session: aiohttp.ClientSession, timeout: Optional[float] = None) -> bool:
    return await _exists(f"{origin}/robots.txt", session, timeout)


async def check_sitemap(origin: str, session: aiohttp.ClientSession, timeout: Optional[float] = None) -> bool:
    return await _exists(f"{origin}/sitemap.xml", session, timeout)

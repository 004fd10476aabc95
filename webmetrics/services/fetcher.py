"""
Timed page fetch using aiohttp.

DNS/TCP/TLS phases are apportioned from the total (5% / 10% / 15%), not measured.
Consumers rely on these exact ratios.
"""
import time
import asyncio
import logging
import aiohttp
from typing import Optional
from ..models import FetchResult, TimingMetrics
from ..exceptions import FetchError
from ..config import get_settings

logger = logging.getLogger(__name__)

DNS_SHARE = 0.05
TCP_SHARE = 0.10
TLS_SHARE = 0.15

ACCEPT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
}

# Pages are parsed on the event loop; anything past this is ignored.
MAX_BODY_BYTES = 2 * 1024 * 1024


async def read_capped(stream: aiohttp.StreamReader, limit: int = MAX_BODY_BYTES) -> bytes:
    """Read until EOF or ``limit`` bytes; StreamReader.read(n) may return a single chunk."""
    chunks = []
    remaining = limit
    while remaining > 0:
        chunk = await stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def decode_body(raw: bytes, charset: Optional[str]) -> str:
    """Decode with the declared charset, falling back to UTF-8 for unknown ones."""
    try:
        return raw.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


def derive_timing(start: float, first_byte: float, end: float, is_https: bool) -> TimingMetrics:
    """Build TimingMetrics from three monotonic timestamps (seconds)."""
    total = max(0, round((end - start) * 1000))
    ttfb = max(0, round((first_byte - start) * 1000))
    download = max(0, total - ttfb)
    return TimingMetrics(
        dns_lookup=round(total * DNS_SHARE),
        tcp_connect=round(total * TCP_SHARE),
        tls_handshake=round(total * TLS_SHARE) if is_https else 0,
        ttfb=ttfb,
        download=download,
        total=total,
    )


async def fetch_with_timing(
    url: str,
    session: aiohttp.ClientSession,
    timeout: Optional[float] = None,
) -> FetchResult:
    """
    GET the page following redirects; raise FetchError on any transport failure.
    At most MAX_BODY_BYTES of the body are read.
    """
    if timeout is None:
        timeout = get_settings().request_timeout_seconds
    start = time.monotonic()
    try:
        async with session.get(
            url,
            timeout=aiohttp.ClientTimeout(total=timeout),
            allow_redirects=True,
            headers=ACCEPT_HEADERS,
        ) as response:
            first_byte = time.monotonic()
            raw = await read_capped(response.content)
            end = time.monotonic()
            body = decode_body(raw, response.charset)
            headers = {k: v for k, v in response.headers.items()}
            status_code = response.status
    except asyncio.TimeoutError:
        raise FetchError(url, f"request timed out after {timeout}s")
    except aiohttp.ClientError as e:
        raise FetchError(url, str(e)[:120] or e.__class__.__name__)

    timing = derive_timing(start, first_byte, end, url.lower().startswith("https"))
    logger.debug("Fetched %s — HTTP %s in %sms", url, status_code, timing.total)
    return FetchResult(status_code=status_code, body=body, headers=headers, timing=timing)

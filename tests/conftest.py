"""
conftest.py — shared pytest fixtures
Adds the project root to sys.path so `webmetrics.*` imports resolve correctly
regardless of where pytest is invoked from.
"""

import io
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest
from fastapi.testclient import TestClient
from webmetrics.main import app


@pytest.fixture(scope="session")
def client():
    """Synchronous test client (probes are patched per test, no real network)."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def good_html():
    """A page that passes every on-page check."""
    return """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Acme Widgets - Handmade Widgets for Every Home</title>
  <meta name="description" content="Acme builds durable handmade widgets for kitchens, workshops and gardens. Free shipping on orders over $50 and a lifetime repair guarantee.">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <link rel="canonical" href="https://acme.example/">
  <link rel="icon" href="/favicon.ico">
  <meta property="og:title" content="Acme Widgets">
  <meta property="og:description" content="Handmade widgets">
  <meta property="og:image" content="https://acme.example/og.png">
  <meta name="twitter:card" content="summary_large_image">
  <script type="application/ld+json">{"@context": "https://schema.org", "@type": "Organization", "name": "Acme"}</script>
</head>
<body>
  <h1>Acme Widgets</h1>
  <h2>Our range</h2>
  <img src="/a.png" alt="Blue widget">
  <img src="/b.png" alt="Red widget">
</body>
</html>"""


@pytest.fixture
def gzip_headers():
    return {"Content-Type": "text/html; charset=utf-8", "Content-Encoding": "gzip"}


def fake_response(status=200, headers=None, text="", json_data=None, charset="utf-8"):
    """aiohttp-like response object; the body stream honours read(n)."""
    body = io.BytesIO(text.encode(charset or "utf-8"))
    resp = MagicMock()
    resp.status = status
    resp.ok = status < 400
    resp.headers = headers or {}
    resp.charset = charset
    resp.content.read = AsyncMock(side_effect=body.read)
    resp.json = AsyncMock(return_value=json_data)
    return resp


def fake_cm(response=None, error=None):
    """Async context manager as returned by session.get()/session.head()."""
    cm = MagicMock()
    if error is not None:
        cm.__aenter__ = AsyncMock(side_effect=error)
    else:
        cm.__aenter__ = AsyncMock(return_value=response)
    cm.__aexit__ = AsyncMock(return_value=False)
    return cm


def fake_session(get=None, head=None):
    session = MagicMock()
    session.get = MagicMock(return_value=get)
    session.head = MagicMock(return_value=head)
    return session

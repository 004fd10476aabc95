"""
PageSpeed Insights adapter — parsing and the "never raises" contract.
"""
import asyncio
import aiohttp
import pytest
from unittest.mock import AsyncMock, patch

from conftest import fake_cm, fake_response, fake_session
from webmetrics.config import Settings
from webmetrics.models import CoreWebVitals, PageSpeedResult
from webmetrics.services import pagespeed
from webmetrics.services.pagespeed import (
    fetch_pagespeed_insights, parse_pagespeed_response, run_pagespeed,
)

SAMPLE = {
    "lighthouseResult": {
        "categories": {
            "performance": {"score": 0.934},
            "accessibility": {"score": 0.88},
            "best-practices": {"score": 1},
            "seo": {"score": 0.915},
        },
        "audits": {
            "largest-contentful-paint": {"numericValue": 2345.67},
            "max-potential-fid": {"numericValue": 87.2},
            "cumulative-layout-shift": {"numericValue": 0.123456},
        },
    }
}


def _no_key_settings():
    return Settings(pagespeed_api_key=None)


class TestParse:

    def test_scores_and_vitals(self):
        result = parse_pagespeed_response(SAMPLE)
        assert result.performance_score == 93
        assert result.accessibility_score == 88
        assert result.best_practices_score == 100
        assert result.seo_score == 92
        assert result.core_web_vitals == CoreWebVitals(lcp=2346, fid=87, cls=0.123)

    def test_zero_score_is_kept(self):
        data = {"lighthouseResult": {"categories": {"performance": {"score": 0}}}}
        assert parse_pagespeed_response(data).performance_score == 0

    def test_missing_sections_are_null(self):
        result = parse_pagespeed_response({})
        assert result.performance_score is None
        assert result.accessibility_score is None
        assert result.core_web_vitals == CoreWebVitals()


class TestRunPagespeed:

    @pytest.mark.asyncio
    async def test_no_api_key_makes_no_request(self):
        session = fake_session()
        with patch.object(pagespeed, "get_settings", _no_key_settings):
            assert await run_pagespeed("https://example.com", session) is None
        session.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_success(self):
        session = fake_session(get=fake_cm(fake_response(200, json_data=SAMPLE)))
        result = await run_pagespeed("https://example.com", session, strategy="desktop", api_key="k", timeout=30)
        assert result.performance_score == 93
        _, kwargs = session.get.call_args
        params = kwargs["params"]
        assert ("strategy", "desktop") in params
        assert ("category", "best-practices") in params
        assert ("key", "k") in params

    @pytest.mark.asyncio
    async def test_seo_category_optional(self):
        session = fake_session(get=fake_cm(fake_response(200, json_data=SAMPLE)))
        await run_pagespeed("https://example.com", session, api_key="k", include_seo=True)
        _, kwargs = session.get.call_args
        assert ("category", "seo") in kwargs["params"]

    @pytest.mark.asyncio
    async def test_non_2xx_is_unavailable(self):
        session = fake_session(get=fake_cm(fake_response(429, json_data={})))
        assert await run_pagespeed("https://example.com", session, api_key="k") is None

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self):
        session = fake_session(get=fake_cm(error=asyncio.TimeoutError()))
        assert await run_pagespeed("https://example.com", session, api_key="k", timeout=30) is None

    @pytest.mark.asyncio
    async def test_client_error_is_unavailable(self):
        session = fake_session(get=fake_cm(error=aiohttp.ClientConnectionError("reset")))
        assert await run_pagespeed("https://example.com", session, api_key="k") is None

    @pytest.mark.asyncio
    async def test_bad_json_is_unavailable(self):
        resp = fake_response(200)
        resp.json = AsyncMock(side_effect=ValueError("not json"))
        session = fake_session(get=fake_cm(resp))
        assert await run_pagespeed("https://example.com", session, api_key="k") is None


class TestFetchInsights:

    @pytest.mark.asyncio
    async def test_no_key_is_unavailable(self):
        with patch.object(pagespeed, "get_settings", _no_key_settings), \
                patch.object(pagespeed, "run_pagespeed", new=AsyncMock()) as run:
            assert await fetch_pagespeed_insights("https://example.com", fake_session()) is None
            run.assert_not_called()

    @pytest.mark.asyncio
    async def test_strategies_merged(self):
        async def fake_run(url, session, strategy="mobile", **kwargs):
            score = 61 if strategy == "mobile" else 94
            return PageSpeedResult(performance_score=score, accessibility_score=80)

        with patch.object(pagespeed, "run_pagespeed", side_effect=fake_run):
            result = await fetch_pagespeed_insights("https://example.com", fake_session(), api_key="k")

        assert result.mobile_score == 61
        assert result.desktop_score == 94
        assert result.performance_score == 61

    @pytest.mark.asyncio
    async def test_desktop_only(self):
        async def fake_run(url, session, strategy="mobile", **kwargs):
            return None if strategy == "mobile" else PageSpeedResult(performance_score=94)

        with patch.object(pagespeed, "run_pagespeed", side_effect=fake_run):
            result = await fetch_pagespeed_insights("https://example.com", fake_session(), api_key="k")

        assert result.performance_score == 94
        assert result.mobile_score is None
        assert result.desktop_score == 94

    @pytest.mark.asyncio
    async def test_missing_key_ignores_environment(self, monkeypatch):
        monkeypatch.setenv("PAGESPEED_API_KEY", "env-key")
        with patch.object(pagespeed, "get_settings", Settings), \
                patch.object(pagespeed, "run_pagespeed", new=AsyncMock()) as run:
            assert await fetch_pagespeed_insights("https://example.com", fake_session(), api_key=None) is None
        run.assert_not_called()

    @pytest.mark.asyncio
    async def test_seo_category_forwarded_to_both_strategies(self):
        with patch.object(pagespeed, "run_pagespeed", new=AsyncMock(return_value=None)) as run:
            await fetch_pagespeed_insights("https://example.com", fake_session(), api_key="k", include_seo=True)
        assert run.await_count == 2
        assert all(call.kwargs["include_seo"] is True for call in run.await_args_list)

    @pytest.mark.asyncio
    async def test_both_unavailable(self):
        with patch.object(pagespeed, "run_pagespeed", new=AsyncMock(return_value=None)):
            assert await fetch_pagespeed_insights("https://example.com", fake_session(), api_key="k") is None

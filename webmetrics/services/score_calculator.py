"""
webmetrics/services/score_calculator.py
Scoring rules shared by the probe:
  - SEO score from the severity-ranked issue list
  - website status classification and error rate
  - fallback performance estimates when PageSpeed data is unavailable
"""
import random
from typing import Iterable, Optional
from ..models import (
    CoreWebVitals, IssueSeverity, PageSpeedResult, SEOIssue, WebsiteStatus,
)

# Points deducted per issue instance
SEVERITY_DEDUCTIONS = {
    IssueSeverity.HIGH: 15,
    IssueSeverity.MEDIUM: 8,
    IssueSeverity.LOW: 3,
}

SEVERITY_ORDER = {
    IssueSeverity.HIGH: 0,
    IssueSeverity.MEDIUM: 1,
    IssueSeverity.LOW: 2,
}

SLOW_RESPONSE_MS = 3000

ERROR_RATES = {
    WebsiteStatus.UP: 0,
    WebsiteStatus.DEGRADED: 5,
    WebsiteStatus.DOWN: 100,
}


def clamp_score(value: float) -> int:
    return int(max(0, min(100, round(value))))


def rank_issues(issues: Iterable[SEOIssue]) -> list:
    """Stable sort, high → medium → low."""
    return sorted(issues, key=lambda i: SEVERITY_ORDER[i.severity])


def calculate_seo_score(issues: Iterable[SEOIssue]) -> int:
    """
    Start at 100 and subtract per issue: high 15, medium 8, low 3.
    Deductions are per instance, not per category.
    """
    score = 100
    for issue in issues:
        score -= SEVERITY_DEDUCTIONS[issue.severity]
    return clamp_score(score)


def classify_status(http_status_code: int, total_ms: int) -> WebsiteStatus:
    """5xx → down; 4xx or slower than 3s → degraded; otherwise up."""
    if http_status_code >= 500:
        return WebsiteStatus.DOWN
    if http_status_code >= 400 or total_ms > SLOW_RESPONSE_MS:
        return WebsiteStatus.DEGRADED
    return WebsiteStatus.UP


def error_rate_for(status: WebsiteStatus) -> int:
    return ERROR_RATES[status]


def base_performance(total_ms: int) -> int:
    if total_ms < 1000:
        return 90
    elif total_ms < 2000:
        return 70
    elif total_ms < 3000:
        return 50
    return 30


def _jitter(rng: random.Random, base: float, variance: float) -> int:
    return clamp_score(base + (rng.random() - 0.5) * variance)


def estimate_performance(total_ms: int, rng: Optional[random.Random] = None) -> PageSpeedResult:
    """
    Heuristic stand-in for Lighthouse scores, derived from total latency plus
    random variance. These are ESTIMATES, never measurements.
    """
    rng = rng or random.Random()
    base = base_performance(total_ms)
    return PageSpeedResult(
        performance_score=_jitter(rng, base, 10),
        mobile_score=_jitter(rng, base - 10, 15),
        desktop_score=_jitter(rng, base + 5, 10),
        accessibility_score=_jitter(rng, base, 20),
        best_practices_score=_jitter(rng, base, 15),
        core_web_vitals=estimate_core_web_vitals(total_ms, rng),
    )


def estimate_core_web_vitals(total_ms: int, rng: Optional[random.Random] = None) -> CoreWebVitals:
    rng = rng or random.Random()
    return CoreWebVitals(
        lcp=round(total_ms * 0.8 + rng.random() * 500),
        fid=round(50 + rng.random() * 100),
        cls=round(rng.random() * 0.25, 3),
    )

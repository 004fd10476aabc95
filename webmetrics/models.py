from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum


class WebsiteStatus(str, Enum):
    UP = "up"
    DOWN = "down"
    DEGRADED = "degraded"


class IssueSeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IssueCategory(str, Enum):
    TECHNICAL = "technical"
    CONTENT = "content"
    SOCIAL = "social"
    PERFORMANCE = "performance"


class DataSource(str, Enum):
    """Where a group of values came from."""
    MEASURED = "measured"
    ESTIMATED = "estimated"
    UNAVAILABLE = "unavailable"


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ─── Request Models ────────────────────────────────────────────────────────────

class MonitorRequest(BaseModel):
    url: Optional[str] = Field(None, description="Website to probe; https:// is assumed when no scheme is given")

    model_config = {
        "json_schema_extra": {
            "example": {"url": "example.com"}
        }
    }


# ─── Probe Component Results ───────────────────────────────────────────────────

class TimingMetrics(CamelModel):
    dns_lookup: int = 0
    tcp_connect: int = 0
    tls_handshake: int = 0
    ttfb: int = 0
    download: int = 0
    total: int = 0


class FetchResult(BaseModel):
    status_code: int
    body: str = ""
    headers: Dict[str, str] = {}
    timing: TimingMetrics

    @property
    def ok(self) -> bool:
        return self.status_code < 400


class SSLInfo(CamelModel):
    valid: bool = False
    expiry_date: Optional[datetime] = None
    days_until_expiry: Optional[int] = None
    issuer: Optional[str] = None


class CoreWebVitals(CamelModel):
    lcp: Optional[int] = None
    fid: Optional[int] = None
    cls: Optional[float] = None


class PageSpeedResult(CamelModel):
    performance_score: Optional[int] = None
    accessibility_score: Optional[int] = None
    best_practices_score: Optional[int] = None
    seo_score: Optional[int] = None
    mobile_score: Optional[int] = None
    desktop_score: Optional[int] = None
    core_web_vitals: CoreWebVitals = Field(default_factory=CoreWebVitals)


# ─── SEO Models ────────────────────────────────────────────────────────────────

class SEOIssue(CamelModel):
    category: IssueCategory
    severity: IssueSeverity
    issue: str
    impact: str
    solution: str


class TitleTag(CamelModel):
    present: bool = False
    length: Optional[int] = None
    content: Optional[str] = None


class MetaDescription(CamelModel):
    present: bool = False
    length: Optional[int] = None
    content: Optional[str] = None


class Headings(CamelModel):
    h1_count: int = 0
    h2_count: int = 0
    has_proper_structure: bool = False


class ImageStats(CamelModel):
    total: int = 0
    with_alt: int = 0
    missing_alt: int = 0


class OpenGraph(CamelModel):
    has_title: bool = False
    has_description: bool = False
    has_image: bool = False

    @property
    def complete(self) -> bool:
        return self.has_title and self.has_description and self.has_image


class TwitterCard(CamelModel):
    present: bool = False
    type: Optional[str] = None


class SEOAnalysis(CamelModel):
    score: Optional[int] = None
    title_tag: TitleTag = Field(default_factory=TitleTag)
    meta_description: MetaDescription = Field(default_factory=MetaDescription)
    headings: Headings = Field(default_factory=Headings)
    images: ImageStats = Field(default_factory=ImageStats)
    canonical_tag: bool = False
    robots_txt: bool = False
    sitemap: bool = False
    mobile_friendly: bool = False
    indexable: bool = False
    open_graph: OpenGraph = Field(default_factory=OpenGraph)
    twitter_card: TwitterCard = Field(default_factory=TwitterCard)
    structured_data: bool = False
    language: Optional[str] = None
    favicon: bool = False
    compression: bool = False
    issues: List[str] = []
    recommendations: List[str] = []
    enhanced_issues: List[SEOIssue] = []


# ─── Monitoring Result ─────────────────────────────────────────────────────────

class PerformanceBreakdown(CamelModel):
    dns: Optional[int] = None
    connect: Optional[int] = None
    ttfb: Optional[int] = None
    download: Optional[int] = None


class DataSources(CamelModel):
    ssl: DataSource = DataSource.UNAVAILABLE
    scores: DataSource = DataSource.UNAVAILABLE
    core_web_vitals: DataSource = DataSource.UNAVAILABLE


class WebsiteMetrics(CamelModel):
    url: str
    timestamp: datetime
    status: WebsiteStatus
    http_status_code: Optional[int] = None
    response_time: Optional[int] = None
    ttfb: Optional[int] = None
    dns_lookup_time: Optional[int] = None
    tcp_connect_time: Optional[int] = None
    tls_handshake_time: Optional[int] = None
    ssl_certificate: SSLInfo = Field(default_factory=SSLInfo)
    performance_score: Optional[int] = None
    error_rate: int = 0
    core_web_vitals: Optional[CoreWebVitals] = None
    mobile_score: Optional[int] = None
    desktop_score: Optional[int] = None
    accessibility_score: Optional[int] = None
    best_practices_score: Optional[int] = None
    # Lighthouse SEO category, only when PageSpeed ran with PAGESPEED_INCLUDE_SEO
    lighthouse_seo_score: Optional[int] = None
    performance_breakdown: Optional[PerformanceBreakdown] = None
    data_sources: DataSources = Field(default_factory=DataSources)
    error: Optional[str] = None


class MonitoringResult(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    website: WebsiteMetrics
    seo: SEOAnalysis

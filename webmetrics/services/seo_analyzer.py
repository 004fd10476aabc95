"""
webmetrics/services/seo_analyzer.py
Heuristic on-page SEO analysis over fetched HTML + response headers.

Signals checked (severity of the issue raised when a check fails):
  title tag            missing → high, > 60 chars → medium, < 30 chars → low,
                       a word repeated more than twice → low
  meta description     missing → high, > 160 chars → medium
  headings             no H1 → high, several H1 → medium
  image alt text       any missing → medium, more than 5 missing → high
  canonical link       missing → medium
  viewport meta        missing → high
  Open Graph           incomplete → medium
  Twitter card         missing → low
  structured data      missing → medium
  <html lang>          missing → low
  favicon              missing → low
  compression          no gzip/br/deflate Content-Encoding → medium

Score = 100 minus 15/8/3 per high/medium/low issue, clamped to [0, 100].
"""
import re
from collections import Counter
from typing import List, Mapping, Optional
from .html_signals import HTMLSignals
from .score_calculator import calculate_seo_score, rank_issues
from ..models import (
    Headings, ImageStats, IssueCategory, IssueSeverity, MetaDescription,
    OpenGraph, SEOAnalysis, SEOIssue, TitleTag, TwitterCard,
)

TITLE_MAX = 60
TITLE_MIN = 30
META_DESC_MAX = 160
META_DESC_SHORT = 120
MAX_WORD_REPEATS = 2
MISSING_ALT_HIGH = 5
COMPRESSION_RE = re.compile(r"\b(gzip|br|deflate)\b", re.IGNORECASE)
# Media queries, <link media=...> or a known responsive CSS framework
RESPONSIVE_RE = re.compile(r"@media|media=[\"']|bootstrap|tailwind|foundation", re.IGNORECASE)


class _Findings:
    """Collects enhanced issues, plain issue strings and recommendations."""

    def __init__(self):
        self.enhanced: List[SEOIssue] = []
        self.notes: List[str] = []
        self.recommendations: List[str] = []

    def issue(self, category: IssueCategory, severity: IssueSeverity, issue: str, impact: str, solution: str):
        self.enhanced.append(SEOIssue(
            category=category, severity=severity, issue=issue, impact=impact, solution=solution,
        ))
        self.recommendations.append(solution)

    def note(self, text: str, recommendation: Optional[str] = None):
        """Unscored, informational entry."""
        self.notes.append(text)
        if recommendation:
            self.recommendations.append(recommendation)

    def recommend(self, text: str):
        self.recommendations.append(text)


def _meta_content(page: HTMLSignals, **attrs) -> Optional[str]:
    value = page.attribute_value("meta", "content", attrs)
    return value.strip() if value is not None else None


def _has_meta(page: HTMLSignals, key: str) -> bool:
    return page.has_tag("meta", {"property": key}) or page.has_tag("meta", {"name": key})


def _check_title(page: HTMLSignals, f: _Findings) -> TitleTag:
    raw = page.text("title")
    content = raw.strip() if raw else None
    if not content:
        f.issue(IssueCategory.CONTENT, IssueSeverity.HIGH,
                "Missing title tag",
                "Search engines cannot show a meaningful headline for the page",
                "Add a descriptive title tag (50-60 characters) including primary keywords")
        return TitleTag()

    length = len(content)
    if length > TITLE_MAX:
        f.issue(IssueCategory.CONTENT, IssueSeverity.MEDIUM,
                f"Title tag too long ({length} characters)",
                "Titles over 60 characters get truncated in search results",
                "Shorten the title to 50-60 characters")
    elif length < TITLE_MIN:
        f.issue(IssueCategory.CONTENT, IssueSeverity.LOW,
                f"Title tag too short ({length} characters)",
                "Short titles miss keyword and click-through opportunities",
                "Expand the title to 50-60 characters")

    words = content.lower().split()
    if words and max(Counter(words).values()) > MAX_WORD_REPEATS:
        f.issue(IssueCategory.CONTENT, IssueSeverity.LOW,
                "Possible keyword stuffing in title tag",
                "Repeated keywords look spammy to search engines and users",
                "Avoid repeating keywords excessively in the title tag")

    return TitleTag(present=True, length=length, content=content)


def _check_meta_description(page: HTMLSignals, f: _Findings) -> MetaDescription:
    content = _meta_content(page, name="description")
    if not content:
        f.issue(IssueCategory.CONTENT, IssueSeverity.HIGH,
                "Missing meta description",
                "Search engines generate their own snippet, lowering click-through rates",
                "Add a compelling meta description (150-160 characters) with a call-to-action")
        return MetaDescription()

    length = len(content)
    if length > META_DESC_MAX:
        f.issue(IssueCategory.CONTENT, IssueSeverity.MEDIUM,
                f"Meta description too long ({length} characters)",
                "Descriptions over 160 characters are truncated in search results",
                "Reduce the meta description to 150-160 characters")
    elif length < META_DESC_SHORT:
        f.recommend("Consider expanding meta description for better engagement (currently <120 characters)")

    if "welcome to" in content.lower():
        f.recommend('Avoid generic phrases like "Welcome to" in meta description')

    return MetaDescription(present=True, length=length, content=content)


def _check_headings(page: HTMLSignals, f: _Findings) -> Headings:
    h1 = page.tag_count("h1")
    h2 = page.tag_count("h2")
    h3 = page.tag_count("h3")

    if h1 == 0:
        f.issue(IssueCategory.CONTENT, IssueSeverity.HIGH,
                "Missing H1 tag",
                "Search engines and screen readers rely on the H1 to understand the page topic",
                "Add exactly one H1 tag describing the main page content")
    elif h1 > 1:
        f.issue(IssueCategory.CONTENT, IssueSeverity.MEDIUM,
                f"Multiple H1 tags ({h1})",
                "Several H1 tags dilute the page's main topic",
                "Use only one H1 tag per page, use H2-H6 for subheadings")

    if h2 == 0:
        f.recommend("Add H2 subheadings to structure content and improve readability")
    elif h3 == 0 and h2 > 2:
        f.recommend("Consider using H3 tags for deeper content organization")

    return Headings(h1_count=h1, h2_count=h2, has_proper_structure=(h1 == 1 and h2 > 0))


def _check_images(page: HTMLSignals, f: _Findings) -> ImageStats:
    images = page.find_all("img")
    total = len(images)
    with_alt = sum(1 for img in images if (img.get("alt") or "").strip())
    empty_alt = sum(1 for img in images if img.get("alt") is not None and not img.get("alt").strip())
    missing = total - with_alt

    if missing > 0:
        f.issue(IssueCategory.CONTENT,
                IssueSeverity.HIGH if missing > MISSING_ALT_HIGH else IssueSeverity.MEDIUM,
                f"{missing} image(s) missing ALT attributes",
                "Images without ALT text are invisible to search engines and screen readers",
                "Add descriptive ALT text to all images")
    if 0 < empty_alt < 3:
        f.recommend("Consider adding descriptive ALT text instead of empty attributes for decorative images")

    lazy = sum(1 for img in images if (img.get("loading") or "").lower() == "lazy")
    if total > 3 and lazy == 0:
        f.recommend("Implement lazy loading for images to improve page load speed")

    return ImageStats(total=total, with_alt=with_alt, missing_alt=missing)


def _check_canonical(page: HTMLSignals, f: _Findings) -> bool:
    count = page.tag_count("link", {"rel": "canonical"})
    if count == 0:
        f.issue(IssueCategory.TECHNICAL, IssueSeverity.MEDIUM,
                "Missing canonical tag",
                "Duplicate URLs may split ranking signals",
                "Add a canonical link tag pointing to the preferred URL")
    elif count > 1:
        f.note("Multiple canonical tags found - Can confuse search engines",
               "Use only one canonical tag per page")
    return count > 0


def _check_viewport(page: HTMLSignals, f: _Findings) -> bool:
    if page.has_tag("meta", {"name": "viewport"}):
        if not page.mentions(RESPONSIVE_RE):
            f.recommend("Consider implementing responsive design for better mobile experience")
        return True
    f.issue(IssueCategory.TECHNICAL, IssueSeverity.HIGH,
            "Missing viewport meta tag",
            "The page is not mobile-friendly, which hurts mobile rankings",
            'Add <meta name="viewport" content="width=device-width, initial-scale=1">')
    return False


def _check_indexable(page: HTMLSignals, f: _Findings) -> bool:
    noindex = any("noindex" in (m.get("content") or "").lower() for m in page.find_all("meta"))
    if noindex:
        f.note("Page is marked as noindex", "Page is marked as noindex - Ensure this is intentional")

    robots = _meta_content(page, name="robots")
    if robots and "nofollow" in robots.lower():
        f.recommend("Page has nofollow directive - Ensure this is intentional")
    return not noindex


def _check_open_graph(page: HTMLSignals, f: _Findings) -> OpenGraph:
    og = OpenGraph(
        has_title=_has_meta(page, "og:title"),
        has_description=_has_meta(page, "og:description"),
        has_image=_has_meta(page, "og:image"),
    )
    if not og.complete:
        f.issue(IssueCategory.SOCIAL, IssueSeverity.MEDIUM,
                "Incomplete Open Graph tags",
                "Shared links render without a proper title, description or image",
                "Add og:title, og:description and og:image meta tags")
    return og


def _check_twitter_card(page: HTMLSignals, f: _Findings) -> TwitterCard:
    card = _meta_content(page, name="twitter:card") or _meta_content(page, property="twitter:card")
    present = _has_meta(page, "twitter:card")
    if not present:
        f.issue(IssueCategory.SOCIAL, IssueSeverity.LOW,
                "Missing Twitter Card tags",
                "Links shared on X/Twitter show a plain preview",
                'Add <meta name="twitter:card" content="summary_large_image">')
    return TwitterCard(present=present, type=card or None)


def _check_structured_data(page: HTMLSignals, f: _Findings) -> bool:
    found = page.has_tag("script", {"type": "application/ld+json"}) or page.has_attribute("itemscope")
    if not found:
        f.issue(IssueCategory.TECHNICAL, IssueSeverity.MEDIUM,
                "No structured data found",
                "The page is not eligible for rich results",
                "Add JSON-LD structured data describing the page content")
    return found


def _check_language(page: HTMLSignals, f: _Findings) -> Optional[str]:
    lang = page.attribute_value("html", "lang")
    lang = lang.strip() if lang else None
    if not lang:
        f.issue(IssueCategory.TECHNICAL, IssueSeverity.LOW,
                "Missing language attribute",
                "Search engines may serve the page to the wrong audience",
                'Add a lang attribute to the html tag, e.g. <html lang="en">')
    return lang


def _check_favicon(page: HTMLSignals, f: _Findings) -> bool:
    found = page.has_tag("link", {"rel": "icon"})
    if not found:
        f.issue(IssueCategory.TECHNICAL, IssueSeverity.LOW,
                "Missing favicon",
                "Browser tabs and mobile search results show a generic icon",
                'Add <link rel="icon" href="/favicon.ico">')
    return found


def _check_compression(headers: Mapping[str, str], f: _Findings) -> bool:
    encoding = next((v for k, v in headers.items() if k.lower() == "content-encoding"), "")
    found = bool(COMPRESSION_RE.search(encoding or ""))
    if not found:
        f.issue(IssueCategory.PERFORMANCE, IssueSeverity.MEDIUM,
                "Response is not compressed",
                "Uncompressed HTML slows down page loads",
                "Enable gzip or Brotli compression on the server")
    return found


def analyze_seo(html: str, url: str, headers: Optional[Mapping[str, str]] = None) -> SEOAnalysis:
    """Run every on-page check and score the result. robots_txt/sitemap are filled in by the caller."""
    page = HTMLSignals(html)
    f = _Findings()

    title = _check_title(page, f)
    meta_description = _check_meta_description(page, f)
    headings = _check_headings(page, f)
    images = _check_images(page, f)
    canonical = _check_canonical(page, f)
    mobile_friendly = _check_viewport(page, f)
    indexable = _check_indexable(page, f)
    open_graph = _check_open_graph(page, f)
    twitter_card = _check_twitter_card(page, f)
    structured_data = _check_structured_data(page, f)
    language = _check_language(page, f)
    favicon = _check_favicon(page, f)
    compression = _check_compression(headers or {}, f)

    ranked = rank_issues(f.enhanced)
    return SEOAnalysis(
        score=calculate_seo_score(ranked),
        title_tag=title,
        meta_description=meta_description,
        headings=headings,
        images=images,
        canonical_tag=canonical,
        mobile_friendly=mobile_friendly,
        indexable=indexable,
        open_graph=open_graph,
        twitter_card=twitter_card,
        structured_data=structured_data,
        language=language,
        favicon=favicon,
        compression=compression,
        issues=[i.issue for i in ranked] + f.notes,
        recommendations=list(dict.fromkeys(f.recommendations)),
        enhanced_issues=ranked,
    )

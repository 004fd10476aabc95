"""
Narrow HTML extraction interface used by the SEO analyzer.

The analyzer only asks a page narrow questions (is there such a tag, what is
this attribute's value, how many of these tags, does the markup mention a
pattern). BeautifulSoup answers them; the analyzer never walks the tree itself.
"""
import re
from typing import Dict, Optional
from bs4 import BeautifulSoup


def _matches(value, expected: str) -> bool:
    """Case-insensitive attribute match; multi-valued attributes (rel) match any token."""
    if value is None:
        return False
    if isinstance(value, (list, tuple)):
        return any(v.lower() == expected.lower() for v in value)
    return value.strip().lower() == expected.lower()


class HTMLSignals:
    def __init__(self, html: str):
        self.html = html or ""
        self.soup = BeautifulSoup(self.html, "html.parser")

    def mentions(self, pattern: "re.Pattern") -> bool:
        """Search the raw markup, including inline CSS and script URLs."""
        return pattern.search(self.html) is not None

    def find_all(self, name: str, attrs: Optional[Dict[str, str]] = None) -> list:
        attrs = attrs or {}
        return [
            tag for tag in self.soup.find_all(name)
            if all(_matches(tag.get(k), v) for k, v in attrs.items())
        ]

    def tag_count(self, name: str, attrs: Optional[Dict[str, str]] = None) -> int:
        return len(self.find_all(name, attrs))

    def has_tag(self, name: str, attrs: Optional[Dict[str, str]] = None) -> bool:
        return self.tag_count(name, attrs) > 0

    def attribute_value(self, name: str, attr: str, attrs: Optional[Dict[str, str]] = None) -> Optional[str]:
        """Value of ``attr`` on the first matching tag, or None."""
        for tag in self.find_all(name, attrs):
            value = tag.get(attr)
            if value is not None:
                return " ".join(value) if isinstance(value, list) else value
        return None

    def text(self, name: str) -> Optional[str]:
        tag = self.soup.find(name)
        return tag.get_text() if tag else None

    def has_attribute(self, attr: str) -> bool:
        return self.soup.find(attrs={attr: True}) is not None

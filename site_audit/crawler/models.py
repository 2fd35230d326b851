# site_audit/crawler/models.py
"""
Data models for the SiteAudit page fetcher.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

HTML_TYPES = ("text/html", "application/xhtml+xml")


@dataclass(slots=True)
class FetchedPage:
    """Final URL (after redirects), status, headers and decoded body of a response."""

    url: str
    status: int
    content_type: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    text: str = ""

    @property
    def is_html(self) -> bool:
        # servers that omit Content-Type are given the benefit of the doubt
        return self.content_type in HTML_TYPES or not self.content_type

# site_audit/checks/base.py
"""
Common interface of the audit checks.

A check receives a :class:`~site_audit.models.PageInput` and returns a payload
(a dataclass or a JSON-compatible dict), or raises. The page auditor turns
exceptions into failure outcomes, so checks do not catch their own errors.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from site_audit.crawler.fetcher import PageFetcher
from site_audit.errors import FetchError
from site_audit.models import PageInput


class AuditCheck(ABC):
    """One independent, swappable inspection of a page."""

    name: ClassVar[str]

    @abstractmethod
    async def run(self, page: PageInput) -> Any:
        """Inspect *page* and return the check payload."""


class MarkupCheck(AuditCheck):
    """A check that works on the page HTML, fetching it when the crawler did not."""

    def __init__(self, fetcher: PageFetcher) -> None:
        self.fetcher = fetcher

    async def markup(self, page: PageInput) -> str:
        if page.content is not None:
            return page.content
        fetched = await self.fetcher.fetch(page.url)
        if not fetched.is_html:
            raise FetchError("unsupported-content", page.url, f"not HTML: {fetched.content_type}")
        return fetched.text

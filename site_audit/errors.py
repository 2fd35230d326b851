# site_audit/errors.py
"""
Exception hierarchy for SiteAudit.

Only :class:`CrawlError` aborts an audit run. The other errors are caught by the
crawler, the page auditor or the engine and stored in the report as data.
"""
from __future__ import annotations

from typing import Optional

__all__ = (
    "SiteAuditError",
    "CrawlError",
    "FetchError",
    "CheckError",
    "SummaryError",
    "RenderError",
)


class SiteAuditError(Exception):
    """Base class for all SiteAudit errors."""


class CrawlError(SiteAuditError):
    """The start URL is invalid or unreachable; the whole audit is aborted."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Cannot audit {url}: {reason}")


class FetchError(SiteAuditError):
    """A single HTTP fetch failed.

    ``kind`` is one of ``timeout``, ``network``, ``http-status``,
    ``unsupported-content`` or ``malformed``.
    """

    def __init__(self, kind: str, url: str, message: str, status: Optional[int] = None) -> None:
        self.kind = kind
        self.url = url
        self.status = status
        super().__init__(message)


class CheckError(SiteAuditError):
    """An audit check could not produce a result for a page."""

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        super().__init__(message)


class SummaryError(SiteAuditError):
    """The narrative summarizer failed."""


class RenderError(SiteAuditError):
    """A report renderer failed."""

"""site_audit.progress: progress hooks for long audit runs.

An observer is told about milestones (page fetched, check completed, crawl
finished, ...). It never influences the audit result: an exception raised by an
observer is logged and ignored by :func:`notify`.
"""
from __future__ import annotations

from typing import Any, Optional

from site_audit.logger import get_logger

logger = get_logger("progress")

__all__ = ["AuditObserver", "LoggingObserver", "notify"]


class AuditObserver:
    """Base observer with no-op hooks; override the ones you need."""

    def crawl_started(self, start_url: str, max_depth: int, max_pages: int) -> None:
        pass

    def page_fetched(self, url: str, depth: int) -> None:
        pass

    def page_failed(self, url: str, depth: int, kind: str, message: str) -> None:
        pass

    def crawl_finished(self, start_url: str, pages: int, failures: int) -> None:
        pass

    def check_completed(self, url: str, check: str, ok: bool) -> None:
        pass

    def page_audited(self, url: str, index: int, total: int) -> None:
        pass

    def audit_finished(self, site_url: str, pages: int) -> None:
        pass


class LoggingObserver(AuditObserver):
    """Writes every milestone to the project logger."""

    def crawl_started(self, start_url: str, max_depth: int, max_pages: int) -> None:
        logger.info("Crawl started: %s (depth ≤ %d, pages ≤ %d)", start_url, max_depth, max_pages)

    def page_fetched(self, url: str, depth: int) -> None:
        logger.info("Fetched [%d] %s", depth, url)

    def page_failed(self, url: str, depth: int, kind: str, message: str) -> None:
        logger.info("Skipped [%d] %s: %s (%s)", depth, url, kind, message)

    def crawl_finished(self, start_url: str, pages: int, failures: int) -> None:
        logger.info("Crawl finished: %d pages, %d failures", pages, failures)

    def check_completed(self, url: str, check: str, ok: bool) -> None:
        logger.info("Check %s on %s: %s", check, url, "ok" if ok else "failed")

    def page_audited(self, url: str, index: int, total: int) -> None:
        logger.info("Audited %d/%d: %s", index, total, url)

    def audit_finished(self, site_url: str, pages: int) -> None:
        logger.info("Audit of %s finished: %d pages", site_url, pages)


def notify(observer: Optional[AuditObserver], event: str, *args: Any) -> None:
    """Call ``observer.<event>(*args)`` if an observer is set."""
    if observer is None:
        return
    try:
        getattr(observer, event)(*args)
    except Exception as exc:
        logger.warning("Observer %s.%s failed: %s", type(observer).__name__, event, exc)

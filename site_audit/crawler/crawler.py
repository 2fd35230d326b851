# site_audit/crawler/crawler.py
"""
Bounded breadth-first crawler.

The frontier (a deque of :class:`CrawlTarget`) and the seen-set live inside a
single :meth:`Crawler.crawl` call and are only touched by its loop.
"""
from __future__ import annotations

import time
from collections import deque
from typing import Deque, List, Optional, Set
from urllib.parse import urlsplit

from site_audit.crawler.fetcher import PageFetcher
from site_audit.crawler.link_extractor import extract_links, normalize_url, same_origin
from site_audit.errors import CrawlError, FetchError
from site_audit.logger import get_logger
from site_audit.models import CrawledPage, CrawlFailure, CrawlResult, CrawlTarget
from site_audit.progress import AuditObserver, notify

logger = get_logger("crawler")

__all__ = ("Crawler",)


class Crawler:
    """Discovers same-origin pages of a site, breadth first, bounded by depth and page count."""

    def __init__(self, fetcher: PageFetcher, observer: Optional[AuditObserver] = None) -> None:
        self.fetcher = fetcher
        self.observer = observer

    async def crawl(self, start_url: str, max_depth: int, max_pages: int) -> CrawlResult:
        """
        Crawl from ``start_url`` and return the fetched pages in discovery order.

        Fetch failures are recorded in ``CrawlResult.failures`` and never raised.
        If the start page itself cannot be fetched the result is empty.
        Raises CrawlError only when ``start_url`` is not an absolute http(s) URL.
        """
        if max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        root = self._validate_start(start_url)

        logger.info("Старт обхода: %s", root)
        notify(self.observer, "crawl_started", root, max_depth, max_pages)
        started = time.monotonic()

        frontier: Deque[CrawlTarget] = deque([CrawlTarget(root, 0)])
        seen: Set[str] = {root}
        pages: List[CrawledPage] = []
        failures: List[CrawlFailure] = []

        while frontier and len(pages) < max_pages:
            target = frontier.popleft()
            if target.depth > max_depth:
                continue
            try:
                fetched = await self.fetcher.fetch(target.url)
            except FetchError as exc:
                self._record_failure(failures, target, exc.kind, str(exc))
                continue

            final_url = normalize_url(fetched.url)
            if final_url != target.url:
                if final_url in seen:
                    logger.debug("Пропуск %s: редирект на уже известный %s", target.url, final_url)
                    continue
                seen.add(final_url)

            if not fetched.is_html:
                self._record_failure(
                    failures, target, "unsupported-content", f"not HTML: {fetched.content_type}"
                )
                continue

            pages.append(CrawledPage(target, fetched.text))
            notify(self.observer, "page_fetched", target.url, target.depth)

            if target.depth + 1 > max_depth:
                continue
            for link in extract_links(fetched.text, fetched.url):
                if link in seen or not same_origin(link, root):
                    continue
                seen.add(link)
                frontier.append(CrawlTarget(link, target.depth + 1))

        duration = time.monotonic() - started
        logger.info(
            "Завершено: %d страниц за %.2f с, ошибок: %d, в очереди осталось: %d",
            len(pages), duration, len(failures), len(frontier),
        )
        notify(self.observer, "crawl_finished", root, len(pages), len(failures))
        return CrawlResult(start_url=root, pages=tuple(pages), failures=tuple(failures))

    def _record_failure(
        self, failures: List[CrawlFailure], target: CrawlTarget, kind: str, message: str
    ) -> None:
        logger.warning("Failed %s: %s (%s)", target.url, kind, message)
        failures.append(CrawlFailure(target.url, target.depth, kind, message))
        notify(self.observer, "page_failed", target.url, target.depth, kind, message)

    @staticmethod
    def _validate_start(start_url: str) -> str:
        try:
            root = normalize_url(start_url)
        except ValueError as exc:
            raise CrawlError(start_url, f"invalid URL ({exc})") from exc
        parts = urlsplit(root)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise CrawlError(start_url, "not an absolute http(s) URL")
        return root

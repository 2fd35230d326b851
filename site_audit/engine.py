# File: site_audit/engine.py
"""site_audit.engine: оркестрация аудита: обход сайта, проверки страниц, сводка."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from aiohttp import ClientSession, ClientTimeout

from site_audit.aggregator import aggregate
from site_audit.auditor import PageAuditor
from site_audit.checks import AuditCheck, build_checks
from site_audit.config import AuditConfig
from site_audit.crawler.crawler import Crawler
from site_audit.crawler.fetcher import PageFetcher
from site_audit.errors import CrawlError
from site_audit.logger import get_logger
from site_audit.models import CrawledPage, PageResultBundle, SiteReport
from site_audit.progress import AuditObserver, notify
from site_audit.summary import Summarizer, TemplateSummarizer, summarize_safely

logger = get_logger("engine")

__all__ = ["AuditEngine", "start_audit"]

ChecksFactory = Callable[[AuditConfig, PageFetcher], Sequence[AuditCheck]]


class AuditEngine:
    """Фасад для CLI и тестов: обход, параллельные проверки страниц и агрегация."""

    def __init__(
        self,
        config: AuditConfig,
        *,
        checks_factory: ChecksFactory = build_checks,
        summarizer: Optional[Summarizer] = None,
        observer: Optional[AuditObserver] = None,
    ) -> None:
        """
        checks_factory строит проверки для сессии конкретного запуска.
        summarizer по умолчанию TemplateSummarizer; при config.summary = False резюме не строится.
        """
        self.config = config
        self.checks_factory = checks_factory
        if not config.summary:
            summarizer = None
        elif summarizer is None:
            summarizer = TemplateSummarizer()
        self.summarizer = summarizer
        self.observer = observer

    async def run_full_audit(
        self,
        site_url: Optional[str] = None,
        max_depth: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> SiteReport:
        """
        Полный аудит сайта. Бросает CrawlError, если стартовая страница недоступна;
        все остальные ошибки попадают в отчёт как данные.
        """
        site = site_url or (str(self.config.base_url) if self.config.base_url else None)
        if not site:
            raise ValueError("no site URL given and config.base_url is not set")
        depth = self.config.max_depth if max_depth is None else max_depth
        limit = self.config.max_pages if max_pages is None else max_pages

        logger.info("Starting audit of %s (depth %d, pages %d)", site, depth, limit)
        async with ClientSession(
            timeout=ClientTimeout(total=self.config.timeout),
            headers={"User-Agent": self.config.user_agent},
        ) as session:
            fetcher = PageFetcher(session, self.config)
            crawl = await Crawler(fetcher, self.observer).crawl(site, depth, limit)
            if crawl.start_failed:
                failure = crawl.failures[0]
                raise CrawlError(failure.url, f"{failure.kind}: {failure.message}")

            auditor = PageAuditor(
                self.checks_factory(self.config, fetcher),
                self.config.check_timeout,
                self.observer,
            )
            bundles = await self._audit_pages(auditor, list(crawl.pages))

        summary = aggregate(bundles)
        narrative = await summarize_safely(self.summarizer, crawl.start_url, bundles, summary)
        report = SiteReport(
            site_url=crawl.start_url,
            pages=tuple(bundles),
            summary=summary,
            crawl_failures=crawl.failures,
            narrative=narrative,
            generated_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )
        logger.info(
            "Audit finished: %d pages, %d failed checks",
            report.crawled_pages, summary.failed_checks,
        )
        notify(self.observer, "audit_finished", report.site_url, report.crawled_pages)
        return report

    async def _audit_pages(
        self, auditor: PageAuditor, pages: List[CrawledPage]
    ) -> List[PageResultBundle]:
        """Не больше page_concurrency страниц одновременно; порядок обхода сохраняется."""
        semaphore = asyncio.Semaphore(self.config.page_concurrency)
        total = len(pages)
        done = 0

        async def _one(page: CrawledPage) -> PageResultBundle:
            nonlocal done
            async with semaphore:
                bundle = await auditor.audit(page.url, page.content)
            done += 1
            notify(self.observer, "page_audited", page.url, done, total)
            return bundle

        return list(await asyncio.gather(*(_one(p) for p in pages)))


async def start_audit(
    cfg: AuditConfig,
    site_url: Optional[str] = None,
    max_depth: Optional[int] = None,
    max_pages: Optional[int] = None,
    observer: Optional[AuditObserver] = None,
) -> SiteReport:
    """
    Запускает полный аудит и возвращает SiteReport.

    Parameters
    ----------
    cfg : AuditConfig
        Конфигурация аудита.
    site_url, max_depth, max_pages
        Переопределяют значения из конфигурации.
    """
    engine = AuditEngine(cfg, observer=observer)
    return await engine.run_full_audit(site_url, max_depth, max_pages)

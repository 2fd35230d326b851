# site_audit/models.py
"""
Data models shared by the crawler, the page auditor, the aggregator and the reports.

Everything produced by an audit run is a frozen dataclass: bundles are written
once by :class:`~site_audit.auditor.PageAuditor` and only read afterwards.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

__all__ = (
    "CrawlTarget",
    "CrawledPage",
    "CrawlFailure",
    "CrawlResult",
    "PageInput",
    "CheckFailure",
    "CheckOutcome",
    "PageResultBundle",
    "AggregateSummary",
    "NarrativeSummary",
    "SiteReport",
)


@dataclass(frozen=True, slots=True)
class CrawlTarget:
    """Normalized absolute URL and the depth it was discovered at."""

    url: str
    depth: int


@dataclass(frozen=True, slots=True)
class CrawledPage:
    """A page fetched during the crawl, with its HTML."""

    target: CrawlTarget
    content: str

    @property
    def url(self) -> str:
        return self.target.url


@dataclass(frozen=True, slots=True)
class CrawlFailure:
    url: str
    depth: int
    kind: str
    message: str


@dataclass(frozen=True, slots=True)
class CrawlResult:
    """Output of one crawl: fetched pages in breadth-first order plus diagnostics."""

    start_url: str
    pages: Tuple[CrawledPage, ...] = ()
    failures: Tuple[CrawlFailure, ...] = ()

    @property
    def urls(self) -> List[str]:
        return [page.url for page in self.pages]

    @property
    def start_failed(self) -> bool:
        return not self.pages and any(f.url == self.start_url for f in self.failures)


@dataclass(frozen=True, slots=True)
class PageInput:
    """What an audit check receives: the page URL and, if already fetched, its HTML."""

    url: str
    content: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CheckFailure:
    kind: str
    message: str


@dataclass(frozen=True, slots=True)
class CheckOutcome:
    """Result of one check on one page: either a payload or a failure, never both."""

    check: str
    payload: Optional[Dict[str, Any]] = None
    failure: Optional[CheckFailure] = None

    def __post_init__(self) -> None:
        if (self.payload is None) == (self.failure is None):
            raise ValueError(f"check '{self.check}' must have exactly one of payload or failure")

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, check: str, payload: Dict[str, Any]) -> CheckOutcome:
        return cls(check=check, payload=payload)

    @classmethod
    def failed(cls, check: str, kind: str, message: str) -> CheckOutcome:
        return cls(check=check, failure=CheckFailure(kind, message))


@dataclass(frozen=True, slots=True)
class PageResultBundle:
    """All check outcomes of one page, in the order the checks are configured."""

    url: str
    outcomes: Tuple[CheckOutcome, ...]

    def __post_init__(self) -> None:
        names = [o.check for o in self.outcomes]
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate check outcomes for {self.url}: {names}")

    def outcome(self, check: str) -> Optional[CheckOutcome]:
        for item in self.outcomes:
            if item.check == check:
                return item
        return None

    def payload(self, check: str) -> Optional[Dict[str, Any]]:
        item = self.outcome(check)
        return item.payload if item is not None else None

    @property
    def failures(self) -> List[CheckOutcome]:
        return [o for o in self.outcomes if not o.ok]


@dataclass(frozen=True, slots=True)
class AggregateSummary:
    """Site-level rollup computed by :func:`site_audit.aggregator.aggregate`."""

    pages: int = 0
    averages: Dict[str, int] = field(default_factory=dict)
    contributors: Dict[str, int] = field(default_factory=dict)
    metrics: Dict[str, float] = field(default_factory=dict)
    accessibility_violations: int = 0
    failed_checks: int = 0
    failures_by_check: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class NarrativeSummary:
    text: str = ""
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SiteReport:
    """Complete result of one audit run."""

    site_url: str
    pages: Tuple[PageResultBundle, ...]
    summary: AggregateSummary
    crawl_failures: Tuple[CrawlFailure, ...] = ()
    narrative: Optional[NarrativeSummary] = None
    generated_at: str = ""

    @property
    def crawled_pages(self) -> int:
        return len(self.pages)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["crawled_pages"] = self.crawled_pages
        return data

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SiteReport:
        """Rebuild a report from the payload produced by :meth:`to_dict`."""
        pages = tuple(
            PageResultBundle(
                url=page["url"],
                outcomes=tuple(_outcome_from_dict(o) for o in page.get("outcomes", [])),
            )
            for page in data.get("pages", [])
        )
        summary = AggregateSummary(**data.get("summary", {}))
        failures = tuple(CrawlFailure(**f) for f in data.get("crawl_failures", []))
        narrative_raw = data.get("narrative")
        narrative = NarrativeSummary(**narrative_raw) if narrative_raw else None
        return cls(
            site_url=data["site_url"],
            pages=pages,
            summary=summary,
            crawl_failures=failures,
            narrative=narrative,
            generated_at=data.get("generated_at", ""),
        )


def _outcome_from_dict(data: Mapping[str, Any]) -> CheckOutcome:
    failure = data.get("failure")
    return CheckOutcome(
        check=data["check"],
        payload=data.get("payload"),
        failure=CheckFailure(**failure) if failure else None,
    )

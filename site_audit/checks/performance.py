# site_audit/checks/performance.py
"""
Performance/quality check backed by the PageSpeed Insights v5 API.

Lighthouse reports category scores as fractions 0..1; they are converted to
0..100 integers here so the rest of SiteAudit only ever sees integer scores.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from site_audit.checks.base import AuditCheck
from site_audit.config import AuditConfig
from site_audit.crawler.fetcher import PageFetcher
from site_audit.errors import CheckError
from site_audit.models import PageInput

CATEGORIES: Dict[str, str] = {
    "performance": "performance",
    "accessibility": "accessibility",
    "seo": "seo",
    "best_practices": "best-practices",
}

METRICS: Dict[str, str] = {
    "fcp": "first-contentful-paint",
    "lcp": "largest-contentful-paint",
    "cls": "cumulative-layout-shift",
    "tbt": "total-blocking-time",
    "inp": "interaction-to-next-paint",
}


@dataclass(slots=True)
class PerformanceResult:
    categories: Dict[str, Optional[int]] = field(default_factory=dict)
    metrics: Dict[str, Optional[float]] = field(default_factory=dict)


def normalize_score(value: Any) -> Optional[int]:
    """Convert a Lighthouse score to a 0..100 integer; ``None`` stays ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    if v <= 1.0:
        v *= 100.0
    v = max(0.0, min(100.0, v))
    return int(v + 0.5)


def parse_lighthouse(data: Mapping[str, Any]) -> PerformanceResult:
    """Pick category scores and timing metrics out of a PSI response body."""
    lhr = data.get("lighthouseResult")
    if not isinstance(lhr, Mapping):
        raise CheckError("malformed", "PageSpeed response has no lighthouseResult")
    categories = lhr.get("categories") or {}
    audits = lhr.get("audits") or {}

    result = PerformanceResult()
    for name, key in CATEGORIES.items():
        result.categories[name] = normalize_score((categories.get(key) or {}).get("score"))
    for name, key in METRICS.items():
        value = (audits.get(key) or {}).get("numericValue")
        result.metrics[name] = float(value) if isinstance(value, (int, float)) else None
    return result


class PerformanceCheck(AuditCheck):
    name = "performance"

    def __init__(self, fetcher: PageFetcher, config: AuditConfig) -> None:
        self.fetcher = fetcher
        self.api_url = str(config.psi_api_url)
        self.api_key = config.psi_api_key
        self.strategy = config.psi_strategy
        self.timeout = config.check_timeout

    def _params(self, url: str) -> List[Tuple[str, str]]:
        params = [("url", url), ("strategy", self.strategy)]
        params.extend(("category", key) for key in CATEGORIES.values())
        if self.api_key:
            params.append(("key", self.api_key))
        return params

    async def run(self, page: PageInput) -> PerformanceResult:
        data = await self.fetcher.get_json(self.api_url, self._params(page.url), timeout=self.timeout)
        return parse_lighthouse(data)

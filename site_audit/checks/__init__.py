"""site_audit.checks: проверки страницы (производительность, доступность, SEO, заголовки безопасности)."""

from __future__ import annotations

from typing import List

from site_audit.checks.accessibility import AccessibilityCheck
from site_audit.checks.base import AuditCheck, MarkupCheck
from site_audit.checks.performance import PerformanceCheck
from site_audit.checks.security import SecurityHeadersCheck
from site_audit.checks.seo import SeoCheck
from site_audit.config import AuditConfig
from site_audit.crawler.fetcher import PageFetcher


def build_checks(config: AuditConfig, fetcher: PageFetcher) -> List[AuditCheck]:
    """Создаёт проверки из config.checks в том же порядке."""
    factories = {
        "performance": lambda: PerformanceCheck(fetcher, config),
        "accessibility": lambda: AccessibilityCheck(fetcher, config.max_affected_nodes),
        "seo": lambda: SeoCheck(fetcher),
        "security": lambda: SecurityHeadersCheck(fetcher),
    }
    checks: List[AuditCheck] = []
    for name in config.checks:
        if name not in factories:
            raise ValueError(f"unknown check: {name}")
        checks.append(factories[name]())
    return checks


__all__ = [
    "AuditCheck",
    "MarkupCheck",
    "AccessibilityCheck",
    "PerformanceCheck",
    "SecurityHeadersCheck",
    "SeoCheck",
    "build_checks",
]

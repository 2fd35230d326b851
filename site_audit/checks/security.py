# site_audit/checks/security.py
"""Security headers check. Disabled unless "security" is listed in ``checks``."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from site_audit.checks.base import AuditCheck
from site_audit.crawler.fetcher import PageFetcher
from site_audit.models import PageInput

SECURITY_HEADERS = (
    "content-security-policy",
    "x-frame-options",
    "strict-transport-security",
    "x-content-type-options",
)


@dataclass(slots=True)
class SecurityHeadersResult:
    headers: Dict[str, Optional[str]] = field(default_factory=dict)
    missing: List[str] = field(default_factory=list)


class SecurityHeadersCheck(AuditCheck):
    name = "security"

    def __init__(self, fetcher: PageFetcher, timeout: Optional[float] = None) -> None:
        self.fetcher = fetcher
        self.timeout = timeout

    async def run(self, page: PageInput) -> SecurityHeadersResult:
        response = await self.fetcher.head(page.url, timeout=self.timeout)
        result = SecurityHeadersResult()
        for name in SECURITY_HEADERS:
            value = response.headers.get(name)
            result.headers[name] = value
            if value is None:
                result.missing.append(name)
        return result

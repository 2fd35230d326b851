# site_audit/auditor.py
"""
Page auditor: runs every audit check of one page concurrently.

Each check is wrapped so that whatever it raises ends up as a
:class:`~site_audit.models.CheckFailure` in its own slot; the gather therefore
never fails and a slow or broken check never cancels its siblings.
"""
from __future__ import annotations

import asyncio
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Optional, Sequence

from aiohttp import ClientError

from site_audit.checks.base import AuditCheck
from site_audit.errors import CheckError, FetchError
from site_audit.logger import get_logger
from site_audit.models import CheckOutcome, PageInput, PageResultBundle
from site_audit.progress import AuditObserver, notify

logger = get_logger("auditor")

__all__ = ("PageAuditor",)


class PageAuditor:
    """Fan-out/fan-in of the audit checks for a single page."""

    def __init__(
        self,
        checks: Sequence[AuditCheck],
        check_timeout: float,
        observer: Optional[AuditObserver] = None,
    ) -> None:
        names = [c.name for c in checks]
        if not names:
            raise ValueError("at least one audit check is required")
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate audit checks: {names}")
        self.checks = tuple(checks)
        self.check_timeout = check_timeout
        self.observer = observer

    async def audit(self, url: str, content: Optional[str] = None) -> PageResultBundle:
        page = PageInput(url=url, content=content)
        outcomes = await asyncio.gather(*(self._run_check(check, page) for check in self.checks))
        return PageResultBundle(url=url, outcomes=tuple(outcomes))

    async def _run_check(self, check: AuditCheck, page: PageInput) -> CheckOutcome:
        try:
            result = await asyncio.wait_for(check.run(page), timeout=self.check_timeout)
            outcome = CheckOutcome.success(check.name, _to_payload(result))
        except asyncio.TimeoutError:
            outcome = CheckOutcome.failed(
                check.name, "timeout", f"no result within {self.check_timeout}s"
            )
        except (FetchError, CheckError) as exc:
            outcome = CheckOutcome.failed(check.name, exc.kind, str(exc))
        except ClientError as exc:
            outcome = CheckOutcome.failed(check.name, "network", str(exc) or type(exc).__name__)
        except Exception as exc:
            logger.exception("Check %s crashed on %s", check.name, page.url)
            outcome = CheckOutcome.failed(check.name, "error", f"{type(exc).__name__}: {exc}")

        if not outcome.ok:
            logger.warning(
                "Check %s failed on %s: %s (%s)",
                check.name, page.url, outcome.failure.kind, outcome.failure.message,
            )
        notify(self.observer, "check_completed", page.url, check.name, outcome.ok)
        return outcome


def _to_payload(result: Any) -> Dict[str, Any]:
    if is_dataclass(result) and not isinstance(result, type):
        return asdict(result)
    if isinstance(result, dict):
        return result
    raise CheckError("malformed", f"check returned {type(result).__name__}, expected a mapping")

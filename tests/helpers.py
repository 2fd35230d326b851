"""Test doubles shared by the test modules."""
import asyncio
from typing import Any, List, Optional

from site_audit.checks.base import AuditCheck
from site_audit.models import CheckOutcome, PageInput, PageResultBundle


def links(*paths: str) -> str:
    """HTML page with one anchor per path, in the given order."""
    anchors = "".join(f'<a href="{p}">{p}</a>' for p in paths)
    return f"<html><head><title>t</title></head><body>{anchors}</body></html>"


class StaticCheck(AuditCheck):
    """Audit check double: returns a payload, raises, or sleeps past the timeout."""

    def __init__(
        self,
        name: str,
        payload: Optional[Any] = None,
        *,
        exc: Optional[BaseException] = None,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.payload = payload if payload is not None else {"ok": True}
        self.exc = exc
        self.delay = delay
        self.calls: List[PageInput] = []

    async def run(self, page: PageInput) -> Any:
        self.calls.append(page)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        if callable(self.payload):
            return self.payload(page)
        return self.payload


def bundle(
    url: str,
    performance: Optional[dict] = None,
    violations: Optional[int] = None,
    failed: tuple = (),
) -> PageResultBundle:
    """Build a bundle; checks named in ``failed`` get a failure outcome."""
    outcomes = []
    if "performance" in failed:
        outcomes.append(CheckOutcome.failed("performance", "timeout", "slow"))
    else:
        outcomes.append(
            CheckOutcome.success("performance", {"categories": performance or {}, "metrics": {}})
        )
    if "accessibility" in failed:
        outcomes.append(CheckOutcome.failed("accessibility", "network", "down"))
    else:
        items = [{"rule_id": f"r{i}", "nodes": []} for i in range(violations or 0)]
        outcomes.append(CheckOutcome.success("accessibility", {"violations": items}))
    if "seo" in failed:
        outcomes.append(CheckOutcome.failed("seo", "http-status", "HTTP 500"))
    else:
        outcomes.append(CheckOutcome.success("seo", {"title": url}))
    return PageResultBundle(url=url, outcomes=tuple(outcomes))

"""site_audit.summary: текстовое резюме отчёта.

Резюме необязательно: ошибка суммаризатора попадает в NarrativeSummary.error
и не мешает вернуть числовые результаты аудита.
"""
from __future__ import annotations

from typing import Optional, Protocol, Sequence

from site_audit.errors import SummaryError
from site_audit.logger import get_logger
from site_audit.models import AggregateSummary, NarrativeSummary, PageResultBundle

logger = get_logger("summary")

__all__ = ["Summarizer", "TemplateSummarizer", "summarize_safely"]


class Summarizer(Protocol):
    async def summarize(
        self,
        site_url: str,
        pages: Sequence[PageResultBundle],
        summary: AggregateSummary,
    ) -> str:
        ...


def _performance_score(bundle: PageResultBundle) -> int:
    payload = bundle.payload("performance") or {}
    score = (payload.get("categories") or {}).get("performance")
    # pages without a score never count as slow
    return score if isinstance(score, int) else 100


class TemplateSummarizer:
    """Короткий детерминированный абзац по цифрам сводки, без внешних сервисов."""

    async def summarize(
        self,
        site_url: str,
        pages: Sequence[PageResultBundle],
        summary: AggregateSummary,
    ) -> str:
        if not pages:
            return f"No pages of {site_url} could be audited."
        scored = [
            f"{name.replace('_', ' ')} {summary.averages[name]}"
            for name, count in summary.contributors.items()
            if count
        ]
        parts = [f"Audited {summary.pages} page(s) of {site_url}."]
        if scored:
            parts.append("Average scores: " + ", ".join(scored) + ".")
        else:
            parts.append("No performance scores were collected.")
        parts.append(f"Accessibility violations found: {summary.accessibility_violations}.")
        if summary.failed_checks:
            failed = ", ".join(f"{k} ×{v}" for k, v in summary.failures_by_check.items())
            parts.append(f"{summary.failed_checks} check(s) failed ({failed}).")
        weakest = [b.url for b in pages if _performance_score(b) < 50]
        if weakest:
            parts.append("Slowest pages: " + ", ".join(weakest[:5]) + ".")
        return " ".join(parts)


async def summarize_safely(
    summarizer: Optional[Summarizer],
    site_url: str,
    pages: Sequence[PageResultBundle],
    summary: AggregateSummary,
) -> Optional[NarrativeSummary]:
    """Вызывает суммаризатор один раз; любая ошибка превращается в NarrativeSummary.error."""
    if summarizer is None:
        return None
    try:
        text = await summarizer.summarize(site_url, pages, summary)
    except Exception as exc:
        logger.warning("Summary generation failed: %s", exc)
        return NarrativeSummary(text="", error=f"{type(exc).__name__}: {exc}")
    if not isinstance(text, str):
        error = SummaryError(f"summarizer returned {type(text).__name__}, expected str")
        logger.warning("Summary generation failed: %s", error)
        return NarrativeSummary(text="", error=str(error))
    return NarrativeSummary(text=text.strip())

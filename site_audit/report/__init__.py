"""site_audit.report: рендереры отчётов (JSON и HTML), используемые CLI и тестами.

Рендеринг вызывается только по явному запросу и не входит в сам аудит.
"""

from __future__ import annotations

from typing import Protocol

from site_audit.models import SiteReport
from site_audit.report.html_report import HtmlReportRenderer, render_html
from site_audit.report.json_report import JsonReportRenderer, load_report, render_json


class ReportRenderer(Protocol):
    def render(self, site_url: str, report: SiteReport) -> bytes:
        ...


__all__ = [
    "ReportRenderer",
    "HtmlReportRenderer",
    "JsonReportRenderer",
    "load_report",
    "render_html",
    "render_json",
]

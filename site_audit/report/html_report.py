"""site_audit.report.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from site_audit.checks.performance import CATEGORIES, METRICS
from site_audit.errors import RenderError
from site_audit.models import SiteReport

TEMPLATE_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "report.html.j2"


class HtmlReportRenderer:
    """Рендерит SiteReport в HTML; неуспешные проверки выделяются отдельно."""

    def __init__(self, template_dir: Union[Path, str, None] = None) -> None:
        self.template_dir = Path(template_dir) if template_dir else TEMPLATE_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml", "j2"]),
        )

    def render(self, site_url: str, report: SiteReport) -> bytes:
        context: dict[str, Any] = {
            "site_url": site_url or report.site_url,
            "report": report,
            "summary": report.summary,
            "pages": report.pages,
            "categories": list(CATEGORIES),
            "metrics": list(METRICS),
            "check_names": _check_names(report),
        }
        try:
            template = self.env.get_template(TEMPLATE_NAME)
            return template.render(**context).encode("utf-8")
        except TemplateError as exc:
            raise RenderError(f"HTML template {TEMPLATE_NAME} failed: {exc}") from exc


def _check_names(report: SiteReport) -> list[str]:
    names: list[str] = []
    for page in report.pages:
        for outcome in page.outcomes:
            if outcome.check not in names:
                names.append(outcome.check)
    return names


def render_html(
    report: SiteReport,
    template_dir: Optional[Union[Path, str]],
    output_path: Union[Path, str],
) -> Path:
    """Рендерит HTML-отчёт из шаблона и сохраняет его по указанному пути.

    Args:
        report: объект SiteReport.
        template_dir: директория с Jinja2-шаблонами (None: встроенный шаблон).
        output_path: путь к итоговому HTML-файлу.

    Returns:
        Path до сохранённого HTML-файла.

    Пример:
    ```python
    from site_audit.report.html_report import render_html
    html_path = render_html(
        report,
        template_dir=None,
        output_path='reports/report.html'
    )
    ```
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(HtmlReportRenderer(template_dir).render(report.site_url, report))
    return output_path

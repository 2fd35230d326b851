# site_audit/report/json_report.py

"""
Генерация JSON-отчёта для проекта SiteAudit.

Сериализация объекта SiteReport в байты или файл.
"""
import json
from pathlib import Path
from typing import Any, Dict

from site_audit.errors import RenderError
from site_audit.models import SiteReport


class JsonReportRenderer:
    """Отчёт в JSON; тот же формат принимает SiteReport.from_dict."""

    def __init__(self, pretty: bool = True) -> None:
        self.pretty = pretty

    def render(self, site_url: str, report: SiteReport) -> bytes:
        data: Dict[str, Any] = report.to_dict()
        data["site_url"] = site_url or report.site_url
        try:
            text = json.dumps(data, ensure_ascii=False, indent=2 if self.pretty else None)
        except (TypeError, ValueError) as exc:
            raise RenderError(f"Ошибка сериализации JSON: {exc}") from exc
        return text.encode("utf-8")


def render_json(report: SiteReport, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Сохраняет отчёт report в формате JSON по указанному пути.

    :param report: объект SiteReport с данными аудита
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from site_audit.report.json_report import render_json
    report_path = render_json(report, 'reports/report.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(JsonReportRenderer(pretty=pretty).render(report.site_url, report))
    return output


def load_report(path: Path | str) -> SiteReport:
    """Читает ранее сохранённый JSON-отчёт."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return SiteReport.from_dict(data)
    except (OSError, ValueError, KeyError, TypeError) as exc:
        raise RenderError(f"Не удалось прочитать отчёт {path}: {exc}") from exc

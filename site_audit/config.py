"""
Модуль для загрузки и валидации конфигурации SiteAudit.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Callable, List, Literal, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
)

KNOWN_CHECKS = ("performance", "accessibility", "seo", "security")
PSI_API_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"


class AuditConfig(BaseModel):
    """Конфигурация одного запуска аудита."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: Optional[HttpUrl] = Field(None, description="Сайт для аудита по умолчанию.")
    max_depth: int = Field(1, ge=0, description="Максимальная глубина обхода ссылок.")
    max_pages: int = Field(8, ge=1, description="Жесткий лимит по числу страниц.")
    timeout: float = Field(30.0, gt=0, description="Таймаут на один запрос (секунд).")
    check_timeout: float = Field(120.0, gt=0, description="Таймаут на одну проверку страницы (секунд).")
    user_agent: str = Field("SiteAuditBot/1.0", min_length=1, description="Заголовок User-Agent.")
    rate_limit: float = Field(5.0, gt=0, description="Лимит запросов к сайту в секунду.")
    retry_times: int = Field(2, ge=0, description="Число повторных попыток при 5xx и 429.")
    backoff_factor: float = Field(1.0, ge=0, description="Множитель экспоненциальной паузы между попытками.")
    page_concurrency: int = Field(1, ge=1, description="Сколько страниц проверяется одновременно.")
    checks: List[str] = Field(
        default_factory=lambda: ["performance", "accessibility", "seo"],
        description="Включённые проверки в порядке вывода.",
    )
    psi_api_url: HttpUrl = Field(
        PSI_API_URL, validate_default=True, description="Адрес PageSpeed Insights API."
    )
    psi_api_key: Optional[str] = Field(None, description="Ключ PageSpeed Insights API.")
    psi_strategy: Literal["mobile", "desktop"] = "mobile"
    max_affected_nodes: int = Field(3, ge=1, description="Сколько узлов сохранять на одно нарушение.")
    summary: bool = Field(True, description="Добавлять текстовое резюме к отчёту.")

    @field_validator("base_url", mode="before")
    def _strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("checks")
    def _known_checks(cls, v: List[str]) -> List[str]:
        unknown = [name for name in v if name not in KNOWN_CHECKS]
        if unknown:
            raise ValueError(f"unknown checks: {', '.join(unknown)}")
        if len(set(v)) != len(v):
            raise ValueError("checks must not repeat")
        if not v:
            raise ValueError("at least one check is required")
        return v


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")
PSI_KEY_ENV = "PSI_API_KEY"

# суффикс файла -> (название формата, парсер, ошибка синтаксиса)
_FORMATS: dict[str, tuple[str, Callable[[str], Any], type[Exception]]] = {
    ".yaml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".yml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".json": ("JSON", json.loads, json.JSONDecodeError),
}


def _resolve(path: Union[str, Path, None]) -> Path:
    resolved = DEFAULT_CONFIG_PATH if path is None else Path(path).expanduser().resolve()
    if not resolved.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(resolved))
    return resolved


def _read_mapping(path: Path) -> dict[str, Any]:
    """Читает YAML/JSON-файл; верхний уровень обязан быть mapping."""
    try:
        fmt, parse, syntax_error = _FORMATS[path.suffix.lower()]
    except KeyError:
        raise ValueError(f"Неподдерживаемый формат конфига: {path.suffix or path.name}") from None
    try:
        data = parse(path.read_text(encoding="utf-8"))
    except syntax_error as exc:
        raise ValueError(f"Неправильный {fmt} в {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень {fmt} должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> AuditConfig:
    """
    Читает YAML или JSON и возвращает проверенный AuditConfig.

    path=None означает configs/default.yaml относительно текущей папки.
    Ошибки: FileNotFoundError (нет файла), ValueError (синтаксис или формат),
    TypeError (не mapping), pydantic.ValidationError (недопустимые значения).
    Ключ PageSpeed можно не хранить в файле: он берётся из переменной PSI_API_KEY.
    """
    data = _read_mapping(_resolve(path))
    if not data.get("psi_api_key") and os.environ.get(PSI_KEY_ENV):
        data["psi_api_key"] = os.environ[PSI_KEY_ENV]
    return AuditConfig.model_validate(data)


__all__ = ["AuditConfig", "DEFAULT_CONFIG_PATH", "KNOWN_CHECKS", "PSI_API_URL", "load_config"]

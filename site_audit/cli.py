#!/usr/bin/env python3
"""
Точка входа для запуска SiteAudit через командную строку.

Команды:
  audit [URL]  Обойти сайт, проверить страницы и вывести/сохранить отчёт
  render FILE  Отрисовать ранее сохранённый JSON-отчёт
  config       Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (по умолчанию configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (кроме stderr)
  --log-format FORMAT Формат логирования
  --version, -v       Показать версию SiteAudit

Пример:
  site-audit --log-level WARNING audit https://example.com --max-pages 5 --json report.json --pretty
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Callable, Optional

import click

from site_audit import __version__
from site_audit.config import DEFAULT_CONFIG_PATH, AuditConfig, load_config
from site_audit.engine import start_audit
from site_audit.errors import CrawlError, RenderError
from site_audit.logger import DEFAULT_FORMAT, get_logger, init_logging
from site_audit.models import SiteReport
from site_audit.progress import LoggingObserver
from site_audit.report.html_report import render_html
from site_audit.report.json_report import load_report, render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

logger = get_logger("cli")

_new_file = click.Path(writable=True, dir_okay=False, path_type=Path)


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def report_outputs(func: Callable) -> Callable:
    """--json/--html/--template, общие для audit и render."""
    func = click.option('--template', '-t', 'template_dir', default=None,
                        type=click.Path(exists=True, file_okay=False, path_type=Path),
                        help='Папка со своим шаблоном report.html.j2')(func)
    func = click.option('--html', '-h', 'html_output', default=None, type=_new_file,
                        help='Записать HTML-отчёт в файл')(func)
    func = click.option('--json', '-j', 'json_output', default=None, type=_new_file,
                        help='Записать JSON-отчёт в файл')(func)
    return func


def _write_reports(report: SiteReport, json_output: Optional[Path], html_output: Optional[Path],
                   template_dir: Optional[Path], pretty: bool) -> None:
    try:
        if json_output:
            click.echo(f'JSON report: {render_json(report, json_output, pretty=pretty)}')
        if html_output:
            click.echo(f'HTML report: {render_html(report, template_dir, html_output)}')
    except RenderError as e:
        print_error(f'Ошибка рендеринга отчёта: {e}')
    except OSError as e:
        print_error(f'Ошибка записи отчёта: {e}')


def _load_cli_config(config_path: Optional[Path]) -> AuditConfig:
    if config_path is None and not DEFAULT_CONFIG_PATH.exists():
        return AuditConfig()
    return load_config(config_path)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteAudit, version %(version)s')
@click.option('--config', '-c', 'config_path', default=None,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='YAML/JSON-файл конфигурации аудита.')
@click.option('--log-level', default='INFO', show_default=True, type=click.Choice(LOG_LEVELS),
              help='Уровень логирования')
@click.option('--log-file', default=None, type=_new_file,
              help='Дополнительно писать логи в файл (с ротацией)')
@click.option('--log-format', default=DEFAULT_FORMAT, show_default=True,
              help='Формат строки лога')
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """SiteAudit: аудит производительности, доступности и SEO сайта."""
    init_logging(level=log_level, log_file=log_file, log_format=log_format)
    try:
        cfg = _load_cli_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.obj = {'config': cfg}


@cli.command('audit', context_settings=CONTEXT_SETTINGS)
@click.argument('url', required=False)
@click.option('--max-depth', '-d', type=click.IntRange(min=0), default=None,
              help='Глубина обхода ссылок (вместо max_depth из конфига)')
@click.option('--max-pages', '-l', type=click.IntRange(min=1), default=None,
              help='Сколько страниц проверить максимум (вместо max_pages)')
@click.option('--page-concurrency', type=click.IntRange(min=1), default=None,
              help='Сколько страниц проверять одновременно')
@report_outputs
@click.option('--pretty', is_flag=True, help='JSON с отступом 2')
@click.option('--audit-timeout', type=click.FloatRange(min=0, min_open=True), default=None,
              help='Ограничение на весь аудит (секунд)')
@click.option('--no-summary', is_flag=True, help='Не строить текстовое резюме')
@click.option('--progress', is_flag=True, help='Логировать каждую страницу и проверку')
@click.pass_context
def audit(ctx, url, max_depth, max_pages, page_concurrency, json_output, html_output,
          template_dir, pretty, audit_timeout, no_summary, progress):
    """Проверить сайт URL (или base_url из конфига) и вывести отчёт."""
    cfg: AuditConfig = ctx.obj['config']
    overrides = {}
    if page_concurrency is not None:
        overrides['page_concurrency'] = page_concurrency
    if no_summary:
        overrides['summary'] = False
    if overrides:
        cfg = cfg.model_copy(update=overrides)

    site = url or (str(cfg.base_url) if cfg.base_url else None)
    if not site:
        print_error('Не указан URL сайта (аргумент URL или base_url в конфиге)')

    logger.info('Starting audit of %s', site)
    run = start_audit(cfg, site, max_depth, max_pages, LoggingObserver() if progress else None)
    if audit_timeout:
        run = asyncio.wait_for(run, timeout=audit_timeout)
    try:
        report = asyncio.run(run)
    except asyncio.TimeoutError:
        print_error(f'Аудит не завершён за {audit_timeout} секунд')
    except CrawlError as e:
        print_error(f'Аудит невозможен: {e}')
    except Exception as e:
        logger.debug('Audit crashed', exc_info=True)
        print_error(f'Ошибка при аудите: {e}')

    if json_output or html_output:
        _write_reports(report, json_output, html_output, template_dir, pretty)
    else:
        click.echo(report.json(pretty=pretty))


@cli.command('render', context_settings=CONTEXT_SETTINGS)
@click.argument('report_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@report_outputs
def render(report_path, json_output, html_output, template_dir):
    """Отрисовать сохранённый JSON-отчёт без повторного аудита."""
    if not html_output and not json_output:
        print_error('Укажите --html и/или --json')
    try:
        report = load_report(report_path)
    except RenderError as e:
        print_error(f'Ошибка рендеринга отчёта: {e}')
    _write_reports(report, json_output, html_output, template_dir, pretty=True)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать действующую конфигурацию в JSON (ключ API скрыт)."""
    data = ctx.obj['config'].model_dump(mode='json')
    if data.get('psi_api_key'):
        data['psi_api_key'] = '***'
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()

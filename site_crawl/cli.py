# === FILE: site_crawl/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска краулера site_crawl через командную строку.

Команды:
  crawl     Обойти домен и записать страницы + report.json
  config    Показать итоговую конфигурацию (JSON)

Общие опции:
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Опции crawl:
  --domain DOMAIN     Домен для обхода (обязательно)
  --out DIR           Каталог для результатов (обязательно)
  --format FMT        md | html | json (обязательно)
  --config PATH       YAML/JSON с параметрами по умолчанию
  --strategy S        pagerank | limit | depth
  --max-pages N, --max-depth N, --clean/--no-clean, --delay-ms MS,
  --page-timeout SEC, --user-agent UA, --retries N

Коды выхода: 0 успех, 1 ошибка, 2 неверные аргументы, 130 прервано.

Пример:
  site-crawl crawl --domain example.com --format md --out ./out
  site-crawl crawl --domain example.com --strategy depth --max-depth 2 --format json --out ./out
"""
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from site_crawl import __version__
from site_crawl.config import load_config
from site_crawl.crawler.errors import CrawlAborted
from site_crawl.crawler.models import RunStatus
from site_crawl.engine import start_crawl
from site_crawl.logger import DEFAULT_FORMAT, init_logging, logger
from site_crawl.report import OutputFormat, write_output

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])
EXIT_FAILURE = 1
EXIT_CANCELLED = 130


def print_error(message: str, code: int = EXIT_FAILURE):
    click.secho(message, fg='red', err=True)
    sys.exit(code)


def config_options(func):
    """Опции, общие для crawl и config: файл конфига и переопределения."""
    options = [
        click.option('--config', '-c', 'config_path', default=None,
                     type=click.Path(exists=True, dir_okay=False, path_type=Path),
                     help='YAML/JSON-файл с параметрами обхода.'),
        click.option('--domain', '-d', default=None, help='Домен для обхода, например example.com.'),
        click.option('--strategy', '-s', default=None,
                     type=click.Choice(['pagerank', 'limit', 'depth'], case_sensitive=False),
                     help='Стратегия обхода [default: pagerank].'),
        click.option('--max-pages', type=int, default=None, help='Жесткий лимит страниц [default: 25].'),
        click.option('--max-depth', type=int, default=None, help='Макс. глубина для strategy=depth [default: 2].'),
        click.option('--clean/--no-clean', default=None, help='Убирать скрипты/стили, извлекать основной контент [default: clean].'),
        click.option('--delay-ms', type=int, default=None, help='Пауза вежливости между переходами, мс [default: 750].'),
        click.option('--page-timeout', type=float, default=None, help='Таймаут страницы, секунд [default: 20].'),
        click.option('--user-agent', default=None, help='Строка User-Agent.'),
        click.option('--retries', 'retry_times', type=int, default=None, help='Повторы при временных ошибках [default: 1].'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_config(config_path, delay_ms, **overrides):
    if delay_ms is not None:
        if delay_ms < 0:
            raise click.UsageError('--delay-ms must be >= 0')
        overrides['delay'] = delay_ms / 1000.0
    try:
        return load_config(config_path, **overrides)
    except ValidationError as e:
        raise click.UsageError(f'Некорректная конфигурация:\n{e}')
    except (ValueError, TypeError, OSError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='site_crawl, version %(version)s')
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
def cli(log_level, log_file, log_format):
    """Ограниченный обход одного домена с ранжированием страниц."""
    init_logging(
        level=log_level.upper(),
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--out', '-o', 'out_dir',
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help='Каталог для страниц и report.json'
)
@click.option(
    '--format', '-f', 'fmt',
    required=True,
    type=click.Choice([f.value for f in OutputFormat], case_sensitive=False),
    help='Формат файлов страниц'
)
@config_options
def crawl(out_dir, fmt, config_path, delay_ms, **overrides):
    """Обойти домен и записать результаты в каталог --out."""
    cfg = _build_config(config_path, delay_ms, **overrides)
    click.echo(f'Crawling {cfg.domain} (strategy={cfg.strategy.value}, max_pages={cfg.max_pages})', err=True)

    failure = None
    try:
        result = start_crawl(cfg)
    except CrawlAborted as e:
        result, failure = e.result, e
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')

    if result is not None:
        try:
            report_path = write_output(result, out_dir, OutputFormat.parse(fmt))
        except OSError as e:
            print_error(f'Ошибка при сохранении результатов: {e}')
        logger.info("Report written: %s", report_path)
        totals = result.totals
        click.echo(
            f'visited={totals.visited} errors={totals.errors} '
            f'skipped_external={totals.skipped_external} '
            f'skipped_out_of_scope={totals.skipped_out_of_scope} report={report_path}'
        )

    if failure is not None:
        print_error(f'Обход не выполнен: {failure}')
    if result is not None and result.status is RunStatus.CANCELLED:
        print_error('Обход прерван, записан частичный результат', EXIT_CANCELLED)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@config_options
def show_config(config_path, delay_ms, **overrides):
    """Показать итоговую конфигурацию в JSON."""
    cfg = _build_config(config_path, delay_ms, **overrides)
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()

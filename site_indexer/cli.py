#!/usr/bin/env python3
"""
Точка входа для запуска обходчика SiteIndexer через командную строку.

Команды:
  crawl     Обойти сайт начиная с SEED_URL и сохранить CSV-отчёт
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда crawl опции:
  --max-concurrency N Одновременных запросов (override max_concurrency)
  --max-pages N       Лимит заявленных URL (override max_pages)
  --csv PATH          Путь CSV-отчёта (default: report.csv)
  --json PATH         Дополнительно сохранить JSON-отчёт
  --crawl-timeout SEC Таймаут всего обхода (секунд)

Пример:
  site-indexer crawl https://blog.boot.dev --max-concurrency 5 --max-pages 50
"""
import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from site_indexer import __version__
from site_indexer.config import CrawlerConfig, load_config
from site_indexer.engine import start_crawl
from site_indexer.logger import init_logging
from site_indexer.report.csv_report import write_csv_report
from site_indexer.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteIndexer, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML или JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд SiteIndexer CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('seed_url', required=False)
@click.option(
    '--max-concurrency', '-n', 'max_concurrency',
    type=click.IntRange(min=1),
    default=None,
    help='Одновременных запросов (override max_concurrency)'
)
@click.option(
    '--max-pages', '-l', 'max_pages',
    type=click.IntRange(min=1),
    default=None,
    help='Лимит заявленных URL (override max_pages)'
)
@click.option(
    '--csv', 'csv_output',
    default='report.csv',
    show_default=True,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь CSV-отчёта'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--crawl-timeout', 'crawl_timeout',
    type=float,
    default=None,
    help='Таймаут всего обхода (секунд)'
)
@click.pass_context
def crawl_cmd(ctx, seed_url, max_concurrency, max_pages, csv_output, json_output, crawl_timeout):
    """Обойти сайт и сгенерировать отчёты."""
    overrides = {
        'base_url': seed_url,
        'max_concurrency': max_concurrency,
        'max_pages': max_pages,
    }
    data = ctx.obj['config'].model_dump(mode='json')
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        cfg = CrawlerConfig(**data)
    except ValidationError as e:
        print_error(f'Invalid crawl settings: {e}')
    if cfg.base_url is None:
        print_error('No website URL provided.')

    click.echo(f'Crawler starting at: {cfg.base_url}')
    try:
        if crawl_timeout:
            results = asyncio.run(
                asyncio.wait_for(start_crawl(cfg), timeout=crawl_timeout)
            )
        else:
            results = asyncio.run(start_crawl(cfg))
    except asyncio.TimeoutError:
        print_error(f'Crawl did not finish within {crawl_timeout} seconds')
    except Exception as e:
        print_error(f'Crawl failed: {e}')

    click.echo(f'Pages found: {len(results)}')

    try:
        saved_csv = write_csv_report(results, csv_output)
    except OSError as e:
        print_error(f'Failed to write CSV report: {e}')
    if saved_csv is None:
        click.echo('No data to write to CSV')
    else:
        click.echo(f'CSV report: {saved_csv}')

    if json_output:
        try:
            saved_json = render_json(results, json_output)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Failed to write JSON report: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()

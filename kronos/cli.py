# === FILE: kronos/cli.py ===
#!/usr/bin/env python3
"""
Точка входа Kronos через командную строку.

Команды:
  minor-end     Время последнего изменения влияния (конец последнего минора)
  delegates     Смены WA-делегатов в течение 4 часов после заданного момента
  tagged        Регионы с указанными тегами (по умолчанию из конфига)
  nations       Текущее число наций
  last-update   Время последнего обновления региона
  embassies     Посольства региона и их типы
  config        Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml)
  --user-agent TEXT   Переопределить User-Agent из конфига
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)

Пример:
  kronos --user-agent "Kronos (by: Testlandia)" minor-end
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable

import click

from kronos import __version__
from kronos.config import load_config
from kronos.engine import Engine
from kronos.errors import KronosError
from kronos.logger import init_logging, logger
from kronos.timeutil import format_timestamp

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def run_with_engine(cfg, action: Callable[[Engine], Awaitable[Any]]) -> Any:
    """Открывает Engine, выполняет action и закрывает сессию."""

    async def _runner() -> Any:
        async with Engine(cfg) as engine:
            result = await action(engine)
            logger.info("Downloaded %d bytes", engine.bytes_downloaded)
            return result

    try:
        return asyncio.run(_runner())
    except KronosError as e:
        print_error(f'Ошибка API: {e}')


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, ensure_ascii=False, indent=2))


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='Kronos, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--user-agent', '-u', 'user_agent',
    default=None,
    help='User-Agent для запросов (override user_agent)'
)
@click.option(
    '--log-level', 'log_level',
    default='WARNING', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stderr, если не указан)'
)
@click.pass_context
def cli(ctx, config_path, user_agent, log_level, log_file):
    """Группа команд Kronos CLI."""
    init_logging(level=log_level, log_file=str(log_file) if log_file else None)
    try:
        cfg = load_config(config_path, user_agent=user_agent)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('minor-end', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--before', 'before',
    type=int,
    default=None,
    help='Начать поиск с этого Unix-времени (по умолчанию предполагаемый конец минора)'
)
@click.pass_context
def minor_end(ctx, before):
    """Найти время последнего изменения влияния."""
    ts = run_with_engine(ctx.obj['config'], lambda engine: engine.end_of_minor(before))
    click.echo(f'{ts} ({format_timestamp(ts)})')


@cli.command('delegates', context_settings=CONTEXT_SETTINGS)
@click.argument('start', type=int)
@click.pass_context
def delegates(ctx, start):
    """Смены WA-делегатов начиная с Unix-времени START."""
    found = run_with_engine(ctx.obj['config'], lambda engine: engine.delegate_changes_from(start))
    echo_json([{'timestamp': h.timestamp, 'text': h.text} for h in found])


@cli.command('tagged', context_settings=CONTEXT_SETTINGS)
@click.argument('tags', nargs=-1)
@click.pass_context
def tagged(ctx, tags):
    """Регионы с тегами TAGS (без аргументов все теги из конфига)."""
    echo_json(run_with_engine(ctx.obj['config'], lambda engine: engine.tagged(tags or None)))


@cli.command('nations', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def nations(ctx):
    """Текущее число наций."""
    click.echo(run_with_engine(ctx.obj['config'], lambda engine: engine.num_nations()))


@cli.command('last-update', context_settings=CONTEXT_SETTINGS)
@click.argument('region')
@click.pass_context
def last_update(ctx, region):
    """Время последнего обновления региона REGION."""
    ts = run_with_engine(ctx.obj['config'], lambda engine: engine.last_update_for(region))
    click.echo(f'{ts} ({format_timestamp(ts)})')


@cli.command('embassies', context_settings=CONTEXT_SETTINGS)
@click.argument('region')
@click.pass_context
def embassies(ctx, region):
    """Посольства региона REGION."""
    echo_json(run_with_engine(ctx.obj['config'], lambda engine: engine.embassies_of(region)))


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()

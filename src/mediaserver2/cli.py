"""Command line interface for the MediaServer2 bridge."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core.listing import ListType
from .core.schema import ALL_PROPERTIES, ROOT_ID, WILDCARD, is_wildcard
from .exceptions import MediaServer2Error, UnknownEndpoint
from .models.config import (
    Config,
    create_default_config,
    load_config,
    load_config_or_default,
)
from .server.endpoint import Endpoint
from .service import MediaServer

console = Console()
logger = logging.getLogger(__name__)

LISTING_FILTER = ("DisplayName", "Type", "ChildCount", "Path")


def setup_logging(verbose: bool) -> None:
    """Configure logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


def _config_file_option(func):
    return click.option(
        '-c', '--config-file',
        type=click.Path(path_type=Path),
        help='Use this config file instead of the per-user one'
    )(func)


def _verbose_option(func):
    return click.option(
        '-v', '--verbose',
        is_flag=True,
        help='Verbose output'
    )(func)


def _load_config(config_file: Optional[Path]) -> Config:
    if config_file is not None:
        return load_config(config_file)
    return load_config_or_default()


def _fail(kind: str, message: str) -> None:
    console.print(f"[red]{kind}: {message}[/red]")
    sys.exit(1)


def _run_against(config_file: Optional[Path], source: str,
                 action: Callable[[Endpoint], Awaitable[Any]]) -> Any:
    """Publish the configured backends in-process and run ``action`` on one endpoint."""

    async def run() -> Any:
        server = MediaServer(_load_config(config_file))
        try:
            await server.load_providers()
            endpoint = server.endpoint(source)
            if endpoint is None:
                raise UnknownEndpoint(f"No published source named {source}")
            return await action(endpoint)
        finally:
            await server.manager.shutdown()

    try:
        return asyncio.run(run())
    except MediaServer2Error as e:
        _fail(e.kind, str(e))


def _columns(fields: Sequence[str]) -> List[str]:
    if is_wildcard(fields):
        return [prop.value for prop in ALL_PROPERTIES]
    return list(fields)


def _format(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


def _render_rows(title: str, fields: Sequence[str], rows: List[List[Any]]) -> None:
    table = Table(title=title)
    for column in _columns(fields):
        table.add_column(column)
    for row in rows:
        table.add_row(*(_format(value) for value in row))
    console.print(table)


@click.group()
@click.version_option(package_name="mediaserver2")
def cli():
    """Publish media backends as MediaServer2 endpoints."""
    pass


@cli.command()
@click.argument('plugins', nargs=-1)
@_config_file_option
@click.option(
    '-D', '--allow-duplicates',
    is_flag=True,
    help='Publish sources even if their names are already taken'
)
@click.option(
    '-l', '--limit',
    type=click.IntRange(min=0),
    help='Maximum number of objects returned per listing (0 = unlimited)'
)
@click.option('--host', help='Address to listen on')
@click.option('--port', type=click.IntRange(0, 65535), help='Port to listen on')
@click.option(
    '--plugin-dir',
    'plugin_dirs',
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    help='Extra directory to scan for provider plugins (repeatable)'
)
@_verbose_option
def serve(plugins: Tuple[str, ...], config_file: Optional[Path], allow_duplicates: bool,
          limit: Optional[int], host: Optional[str], port: Optional[int],
          plugin_dirs: Tuple[Path, ...], verbose: bool):
    """Publish backends and serve them until interrupted."""
    setup_logging(verbose)
    try:
        config = _load_config(config_file)
    except MediaServer2Error as e:
        _fail(e.kind, str(e))

    if allow_duplicates:
        config.server.allow_duplicates = True
    if limit is not None:
        config.server.limit = limit
    config.plugin_dirs.extend(plugin_dirs)

    async def run() -> None:
        server = MediaServer(config)
        try:
            await server.start(plugins or None, host=host, port=port)
            await asyncio.Event().wait()
        finally:
            await server.stop()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Shutting down")
    except MediaServer2Error as e:
        _fail(e.kind, str(e))
    except OSError as e:
        _fail("Failed", str(e))


@cli.command()
@_config_file_option
@_verbose_option
def providers(config_file: Optional[Path], verbose: bool):
    """List discoverable provider plugins."""
    setup_logging(verbose)
    try:
        config = _load_config(config_file)
    except MediaServer2Error as e:
        _fail(e.kind, str(e))

    server = MediaServer(config)
    server.manager.discover_providers()

    table = Table(title="Providers")
    table.add_column("Plugin", style="cyan")
    table.add_column("Version")
    table.add_column("Search")
    table.add_column("Description")
    for name, info in server.manager.list_providers().items():
        backend_class = server.manager.get_class(name)
        searchable = backend_class().supports_search() if backend_class else False
        table.add_row(name, info.version, "yes" if searchable else "no", info.description)
    console.print(table)


@cli.command()
@click.argument('source')
@click.argument('object_id', default=ROOT_ID)
@click.option('--filter', 'fields', multiple=True, default=(WILDCARD,), help='Property to show (repeatable)')
@_config_file_option
@_verbose_option
def props(source: str, object_id: str, fields: Tuple[str, ...], config_file: Optional[Path], verbose: bool):
    """Show the properties of one object."""
    setup_logging(verbose)
    values = _run_against(config_file, source, lambda endpoint: endpoint.get_properties(object_id, list(fields)))

    table = Table(title=f"{source} {object_id}")
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    for column, value in zip(_columns(fields), values):
        table.add_row(column, _format(value))
    console.print(table)


@cli.command()
@click.argument('source')
@click.argument('object_id', default=ROOT_ID)
@click.option(
    '--type', 'list_type',
    type=click.Choice([t.value for t in ListType]),
    default=ListType.ALL.value,
    help='Which children to list'
)
@click.option('--offset', type=click.IntRange(min=0), default=0, help='Number of objects to skip')
@click.option('--max', 'max_count', type=click.IntRange(min=0), default=0,
              help='Maximum number of objects (0 = as many as allowed)')
@click.option('--filter', 'fields', multiple=True, default=LISTING_FILTER, help='Property to show (repeatable)')
@_config_file_option
@_verbose_option
def ls(source: str, object_id: str, list_type: str, offset: int, max_count: int,
       fields: Tuple[str, ...], config_file: Optional[Path], verbose: bool):
    """List the children of a container."""
    setup_logging(verbose)
    listers = {
        ListType.ALL: lambda e: e.list_children,
        ListType.CONTAINERS: lambda e: e.list_containers,
        ListType.ITEMS: lambda e: e.list_items,
    }
    lister = listers[ListType(list_type)]
    rows = _run_against(
        config_file, source,
        lambda endpoint: lister(endpoint)(object_id, offset, max_count, list(fields)),
    )
    _render_rows(f"{source} {object_id} ({list_type})", fields, rows)


@cli.command()
@click.argument('source')
@click.argument('query')
@click.option('--offset', type=click.IntRange(min=0), default=0, help='Number of matches to skip')
@click.option('--max', 'max_count', type=click.IntRange(min=0), default=0,
              help='Maximum number of matches (0 = as many as allowed)')
@click.option('--filter', 'fields', multiple=True, default=LISTING_FILTER, help='Property to show (repeatable)')
@_config_file_option
@_verbose_option
def search(source: str, query: str, offset: int, max_count: int, fields: Tuple[str, ...],
           config_file: Optional[Path], verbose: bool):
    """Search a source from its root container."""
    setup_logging(verbose)
    rows = _run_against(
        config_file, source,
        lambda endpoint: endpoint.search_objects(ROOT_ID, query, offset, max_count, list(fields)),
    )
    _render_rows(f"{source} search {query!r}", fields, rows)


@cli.command('init-config')
@click.argument('path', type=click.Path(path_type=Path))
@click.option('--force', is_flag=True, help='Overwrite an existing file')
def init_config(path: Path, force: bool):
    """Write a default configuration file."""
    if path.exists() and not force:
        _fail("Failed", f"{path} already exists (use --force to overwrite)")
    create_default_config(path)
    console.print(f"[green]Wrote default configuration to {path}[/green]")


if __name__ == '__main__':
    cli()

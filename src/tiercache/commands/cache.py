"""Cache commands -- inspect and maintain the persistent store.

Provides the ``tiercache cache`` sub-command group. All commands operate on
the :class:`~tiercache.cache.store.DiskStore` directory resolved from the
configuration (``--cache-dir``, ``TIERCACHE_CACHE_DIR``, config file, or
the XDG cache directory).
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import typer

from tiercache.cache.keys import build_key
from tiercache.cache.store import DiskStore
from tiercache.client.context import resolve_url
from tiercache.commands._common import exit_with, parse_pairs
from tiercache.exceptions import TiercacheError
from tiercache.output import error, format_response, info, success

T = TypeVar("T")

cache_app = typer.Typer(no_args_is_help=True)

_CACHE_DIR_OPTION = typer.Option(None, "--cache-dir", help="Store directory (overrides config).")


def _with_store(cache_dir: Optional[str], action: Callable[[DiskStore], Awaitable[T]]) -> T:
    """Open the configured store, run *action* on it, and close it again."""
    from tiercache.config import get_store_dir, resolve_config

    async def run() -> T:
        store = DiskStore(get_store_dir(resolve_config(cli_cache_dir=cache_dir)))
        await store.start()
        try:
            return await action(store)
        finally:
            await store.stop()

    try:
        return asyncio.run(run())
    except TiercacheError as exc:
        exit_with(exc)


@cache_app.command("stats")
def cache_stats(cache_dir: Optional[str] = _CACHE_DIR_OPTION) -> None:
    """Show the store directory and number of entries."""

    async def action(store: DiskStore) -> dict[str, Any]:
        return store.stats()

    format_response(_with_store(cache_dir, action))


@cache_app.command("clear")
def cache_clear(cache_dir: Optional[str] = _CACHE_DIR_OPTION) -> None:
    """Remove every entry from the store."""

    async def action(store: DiskStore) -> int:
        return store.clear()

    removed = _with_store(cache_dir, action)
    success(f"Removed {removed} entries.")


@cache_app.command("show")
def cache_show(
    url: str = typer.Argument(help="URL the entry was stored for."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    param: Optional[List[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter NAME=VALUE (repeatable)."
    ),
    cache_dir: Optional[str] = _CACHE_DIR_OPTION,
) -> None:
    """Print the stored entry for URL with its remaining TTL.

    Example::

        tiercache cache show https://api.example.com/users -P page=2
    """
    try:
        key = build_key(method, resolve_url(url, parse_pairs(param, "=", "param")))
    except TiercacheError as exc:
        exit_with(exc)

    async def action(store: DiskStore) -> Any:
        return await store.get(key)

    entry = _with_store(cache_dir, action)
    if entry is None:
        error(f"No fresh entry for {key.id}")
        raise typer.Exit(code=1)

    info(f"Key: {key.segment} {key.id}")
    format_response(entry.model_dump(mode="json"))


@cache_app.command("drop")
def cache_drop(
    url: str = typer.Argument(help="URL the entry was stored for."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    param: Optional[List[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter NAME=VALUE (repeatable)."
    ),
    cache_dir: Optional[str] = _CACHE_DIR_OPTION,
) -> None:
    """Remove the stored entry for URL, if any."""
    try:
        key = build_key(method, resolve_url(url, parse_pairs(param, "=", "param")))
    except TiercacheError as exc:
        exit_with(exc)

    async def action(store: DiskStore) -> None:
        await store.drop(key)

    _with_store(cache_dir, action)
    success(f"Dropped {key.id}")

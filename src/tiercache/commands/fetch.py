"""Fetch command -- one request through a persistent cache tier.

Provides ``tiercache fetch``, which sends a request through a
:class:`~tiercache.cache.store.DiskStore`-backed tier configured from
:func:`~tiercache.config.resolve_config`. The body goes to stdout; the
status line and the cache outcome go to stderr.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

import typer

from tiercache.cache.store import DiskStore
from tiercache.client.async_client import AsyncClient
from tiercache.client.response import format_api_response
from tiercache.commands._common import exit_with, parse_pairs
from tiercache.events import EVENT_KINDS, EventStream, Listener
from tiercache.exceptions import TiercacheError
from tiercache.middleware import max_age
from tiercache.models import GlobalConfig, Response
from tiercache.output import debug


def _build_client(settings: GlobalConfig) -> AsyncClient:
    return AsyncClient(
        timeout=settings.request.timeout,
        verify_ssl=settings.request.verify_ssl,
    )


def _reporter(kind: str) -> Listener:
    def report(ctx) -> None:  # noqa: ANN001
        debug(f"cache {kind}: {ctx.method} {ctx.url}")

    return report


async def _fetch(
    settings: GlobalConfig,
    method: str,
    url: str,
    params: dict[str, str],
    headers: dict[str, str],
) -> Response:
    from tiercache.config import get_store_dir

    store = DiskStore(get_store_dir(settings))
    stream = EventStream()
    for kind in EVENT_KINDS:
        stream.on(f"cache.{kind}", _reporter(kind))
    tier = max_age(store, settings.cache.to_cache_config(), stream=stream)

    await store.start()
    try:
        async with _build_client(settings) as client:
            client.use(tier)
            res = await client.request(method, url, params=params or None, headers=headers or None)
        await tier.flush()
    finally:
        await store.stop()
    return res


def fetch_command(
    url: str = typer.Argument(help="Absolute URL to request."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    param: Optional[List[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter NAME=VALUE (repeatable)."
    ),
    header: Optional[List[str]] = typer.Option(
        None, "--header", "-H", help="Request header 'Name: value' (repeatable)."
    ),
    timeout: Optional[int] = typer.Option(
        None, "--timeout", min=1, help="Cache lookup bound in milliseconds."
    ),
    ignore_cache_errors: Optional[bool] = typer.Option(
        None,
        "--ignore-cache-errors/--fail-on-cache-errors",
        help="Fall back to the origin when the cache times out or fails.",
    ),
    name: Optional[str] = typer.Option(
        None, "--name", help="Tier name used in namespaced events."
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Store directory (overrides config)."
    ),
    include: bool = typer.Option(
        False, "--include", "-i", help="Print response headers to stderr."
    ),
) -> None:
    """Request URL, serving it from the persistent cache when fresh.

    Responses with a positive ``max-age`` and a non-5xx status are stored
    for that long.

    Example::

        tiercache fetch https://api.example.com/users -P page=2
        tiercache fetch --timeout 20 --ignore-cache-errors https://api.example.com/users
    """
    from tiercache.config import resolve_config

    try:
        settings = resolve_config(timeout, ignore_cache_errors, name, cache_dir)
        params = parse_pairs(param, "=", "param")
        headers = parse_pairs(header, ":", "header")
        res = asyncio.run(_fetch(settings, method, url, params, headers))
    except TiercacheError as exc:
        exit_with(exc)

    format_api_response(res, include_headers=include)

"""The cache tier middleware.

:class:`CacheMiddleware` is one tier: a store plus a frozen
:class:`~tiercache.models.CacheConfig`. Per request it

1. builds the key from method and resolved URL,
2. looks it up (bounded by ``timeout``),
3. on a hit, serves the stored response and skips the rest of the chain,
4. otherwise lets the request continue to the origin (or to the next tier),
   then schedules a write of the response if the freshness policy allows,
   without holding up the caller.

Tiers stack: ``client.use(max_age(near)).use(max_age(far))`` puts ``near``
in front of ``far``. When ``far`` serves a hit, the response carries its
remaining TTL and ``near`` stores it for that long, never for the full
``max-age`` window again.

Errors from the origin or from later middleware pass through untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from tiercache.cache.freshness import storage_ttl
from tiercache.cache.keys import build_key
from tiercache.cache.reader import LookupResult, lookup
from tiercache.cache.store import CacheStore
from tiercache.cache.writer import CacheWriter
from tiercache.client.context import CallNext, RequestContext
from tiercache.events import EventStream, events
from tiercache.models import CacheConfig, Response

logger = logging.getLogger(__name__)


class CacheMiddleware:
    """One cache tier, installable with :meth:`AsyncClient.use`.

    Args:
        store: The tier's store. Its ``start``/``stop`` lifecycle belongs to
            the caller.
        config: Tier options; defaults to :class:`~tiercache.models.CacheConfig`.
        stream: Event stream for hit/miss/timeout/error; defaults to the
            process-wide :data:`~tiercache.events.events`.
    """

    def __init__(
        self,
        store: CacheStore,
        config: Optional[CacheConfig] = None,
        stream: Optional[EventStream] = None,
    ) -> None:
        self._store = store
        self._config = config or CacheConfig()
        self._events = stream if stream is not None else events
        self._writer = CacheWriter()

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def store(self) -> CacheStore:
        return self._store

    async def __call__(self, ctx: RequestContext, call_next: CallNext) -> None:
        if ctx.method not in self._config.methods:
            await call_next(ctx)
            return

        key = build_key(ctx.method, ctx.url)
        result: LookupResult = await lookup(self._store, key, self._config, ctx, self._events)
        if result.hit:
            assert result.entry is not None
            ctx.res = Response.from_entry(result.entry)
            return

        await call_next(ctx)

        res = ctx.res
        if res is None:
            return
        ttl = storage_ttl(res)
        if ttl is None:
            logger.debug("Not storing %s (status %s)", key.id, res.status_code)
            return
        self._writer.schedule(self._store, key, res.to_snapshot(), ttl)

    async def flush(self) -> None:
        """Wait for this tier's scheduled writes to settle."""
        await self._writer.drain()


def max_age(
    store: CacheStore,
    config: Optional[CacheConfig] = None,
    *,
    stream: Optional[EventStream] = None,
    **options: Any,
) -> CacheMiddleware:
    """Create a ``max-age`` cache tier over *store*.

    Options may be given as a :class:`~tiercache.models.CacheConfig` or as
    keywords, which are validated into one.

    Example::

        client.use(max_age(store, timeout=50, ignore_cache_errors=True, name="far"))

    Raises:
        pydantic.ValidationError: For unknown or invalid options.
    """
    if config is None:
        config = CacheConfig(**options)
    elif options:
        config = CacheConfig.model_validate({**config.model_dump(), **options})
    return CacheMiddleware(store, config, stream)

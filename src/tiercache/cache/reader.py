"""Bounded, failure-tolerant cache lookups.

:func:`lookup` reads one key from a store and turns whatever happens into
one of three outcomes (:class:`Outcome`): a hit, a miss, or a degraded miss
(a timeout or store error converted into a miss because the tier was
configured with ``ignore_cache_errors``).  Without that flag, timeouts and
store errors fail the request.

When a timeout is configured the store read races a timer.  The read is
never cancelled: once the timer wins, the read keeps running in the
background, any side effects it has still happen, and its eventual result
or exception is discarded.

Events, in order, for one lookup:

* hit -> ``cache.hit``
* miss -> ``cache.miss``
* timeout -> ``cache.timeout``, then ``cache.miss`` if ignored
* store error -> ``cache.error``, then ``cache.miss`` if ignored
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from tiercache.events import ERROR, HIT, MISS, TIMEOUT, EventStream
from tiercache.exceptions import CacheReadError, CacheTimeoutError
from tiercache.models import CacheConfig, CacheEntry, CacheKey

if TYPE_CHECKING:
    from tiercache.cache.store import CacheStore
    from tiercache.client.context import RequestContext

logger = logging.getLogger(__name__)

# Reads that lost the race against the timer. Held so they are not garbage
# collected mid-flight; each removes itself when it settles.
_abandoned: set[asyncio.Future[Any]] = set()


class Outcome(str, enum.Enum):
    HIT = "hit"
    MISS = "miss"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class LookupResult:
    """Outcome of one lookup; ``entry`` is set only for a hit."""

    outcome: Outcome
    entry: Optional[CacheEntry] = None

    @property
    def hit(self) -> bool:
        return self.outcome is Outcome.HIT


def _discard(read: asyncio.Future[Any]) -> None:
    _abandoned.discard(read)
    if read.cancelled():
        return
    exc = read.exception()
    if exc is not None:
        logger.debug("Abandoned cache read failed late: %s", exc)
    else:
        logger.debug("Abandoned cache read settled late; result discarded")


def _abandon(read: asyncio.Future[Any]) -> None:
    _abandoned.add(read)
    read.add_done_callback(_discard)


async def _read(store: CacheStore, key: CacheKey, timeout: Optional[int]) -> Optional[CacheEntry]:
    if timeout is None:
        return await store.get(key)

    read = asyncio.ensure_future(store.get(key))
    try:
        done, _ = await asyncio.wait({read}, timeout=timeout / 1000)
    except asyncio.CancelledError:
        # The caller went away; the read still settles on its own.
        _abandon(read)
        raise
    if read not in done:
        _abandon(read)
        raise CacheTimeoutError(timeout)
    return read.result()


async def lookup(
    store: CacheStore,
    key: CacheKey,
    config: CacheConfig,
    ctx: RequestContext,
    stream: EventStream,
) -> LookupResult:
    """Look *key* up in *store*, bounded by ``config.timeout``.

    Args:
        store: The tier's store.
        key: Key of the request being served.
        config: The tier's configuration.
        ctx: The request context, handed to every emitted event.
        stream: Where to emit events.

    Returns:
        A :class:`LookupResult`; a hit carries the store's
        :class:`~tiercache.models.CacheEntry`.

    Raises:
        CacheTimeoutError: The read did not settle within ``config.timeout``
            and errors are not ignored.
        CacheReadError: The store rejected the read and errors are not
            ignored. The store's exception is the ``__cause__``.
    """
    try:
        entry = await _read(store, key, config.timeout)
    except CacheTimeoutError:
        stream.emit_cache_event(TIMEOUT, ctx, config.name)
        if not config.ignore_cache_errors:
            raise
        logger.warning(
            "Cache lookup for %s timed out after %sms; fetching from origin",
            key.id,
            config.timeout,
        )
        return _degraded(ctx, config, stream)
    except Exception as exc:
        stream.emit_cache_event(ERROR, ctx, config.name)
        if not config.ignore_cache_errors:
            raise CacheReadError(f"Cache lookup failed: {exc}") from exc
        logger.warning("Cache lookup for %s failed (%s); fetching from origin", key.id, exc)
        return _degraded(ctx, config, stream)

    if entry is None:
        logger.debug("Cache miss: %s", key.id)
        stream.emit_cache_event(MISS, ctx, config.name)
        return LookupResult(Outcome.MISS)

    logger.debug("Cache hit: %s (ttl %sms)", key.id, entry.ttl)
    stream.emit_cache_event(HIT, ctx, config.name)
    return LookupResult(Outcome.HIT, entry)


def _degraded(ctx: RequestContext, config: CacheConfig, stream: EventStream) -> LookupResult:
    stream.emit_cache_event(MISS, ctx, config.name)
    return LookupResult(Outcome.DEGRADED)

"""Best-effort cache writes.

A write never fails or delays the request whose response it stores:
:class:`CacheWriter` runs each write as a background task, and
:func:`write` converts any store failure into a logged
:class:`~tiercache.exceptions.CacheWriteError` that is swallowed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from tiercache.exceptions import CacheWriteError
from tiercache.models import CacheKey, ResponseSnapshot

if TYPE_CHECKING:
    from tiercache.cache.store import CacheStore

logger = logging.getLogger(__name__)


async def _set(store: CacheStore, key: CacheKey, item: ResponseSnapshot, ttl: int) -> None:
    try:
        await store.set(key, item, ttl)
    except Exception as exc:
        raise CacheWriteError(f"Cache write for {key.id} failed: {exc}") from exc


async def write(store: CacheStore, key: CacheKey, item: ResponseSnapshot, ttl: int) -> bool:
    """Store *item* under *key* for *ttl* milliseconds.

    Returns:
        ``True`` if the store accepted the write, ``False`` if it failed.
        Failures are logged, never raised.
    """
    try:
        await _set(store, key, item, ttl)
    except CacheWriteError as exc:
        logger.warning("%s", exc)
        return False
    logger.debug("Stored %s for %sms", key.id, ttl)
    return True


class CacheWriter:
    """Schedules :func:`write` calls without awaiting them.

    Pending writes are tracked so :meth:`drain` can wait for them, e.g.
    before stopping the store or in tests that read the store back.
    """

    def __init__(self) -> None:
        self._pending: set[asyncio.Task[bool]] = set()

    def schedule(
        self, store: CacheStore, key: CacheKey, item: ResponseSnapshot, ttl: int
    ) -> asyncio.Task[bool]:
        task = asyncio.ensure_future(write(store, key, item, ttl))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every write scheduled so far to settle."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

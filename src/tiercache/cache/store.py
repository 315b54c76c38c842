"""The cache store contract and the two stores shipped with tiercache.

The caching layer talks to a store only through :class:`CacheStore`:
``get``/``set``/``drop`` plus the ``start``/``stop`` lifecycle, which is
owned by whoever constructs the store, never by the middleware.  Stores
are shared between concurrent requests and are expected to provide their
own consistency (both bundled stores are last-write-wins).

* :class:`MemoryStore` -- a process-local dict, handy as a near tier and
  in tests.
* :class:`DiskStore` -- a persistent tier on top of :mod:`diskcache`,
  used by the ``tiercache`` CLI.

See Also:
    :class:`~tiercache.models.CacheEntry` -- what ``get`` returns on a hit.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Optional, Protocol

import diskcache
from pydantic import ValidationError

from tiercache.exceptions import StoreError
from tiercache.models import CacheEntry, CacheKey, ResponseSnapshot

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class CacheStore(Protocol):
    """Protocol implemented by every store a cache tier can sit on."""

    async def get(self, key: CacheKey) -> Optional[CacheEntry]: ...

    async def set(self, key: CacheKey, item: ResponseSnapshot, ttl: int) -> None: ...

    async def drop(self, key: CacheKey) -> None: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...


class MemoryStore:
    """Process-local store keyed by ``(segment, id)``.

    Works without :meth:`start`. Every read reports the remaining ``ttl``
    so successive reads of one entry never report a larger value; expired
    rows are evicted on read.
    """

    def __init__(self) -> None:
        self._rows: dict[tuple[str, str], tuple[ResponseSnapshot, int, int]] = {}

    async def get(self, key: CacheKey) -> Optional[CacheEntry]:
        row = self._rows.get((key.segment, key.id))
        if row is None:
            return None
        item, stored, ttl = row
        remaining = stored + ttl - _now_ms()
        if remaining <= 0:
            self._rows.pop((key.segment, key.id), None)
            return None
        return CacheEntry(item=item, ttl=remaining, stored=stored)

    async def set(self, key: CacheKey, item: ResponseSnapshot, ttl: int) -> None:
        self._rows[(key.segment, key.id)] = (item, _now_ms(), ttl)

    async def drop(self, key: CacheKey) -> None:
        self._rows.pop((key.segment, key.id), None)

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        self._rows.clear()

    def __len__(self) -> int:
        return len(self._rows)


class DiskStore:
    """Persistent store backed by a :class:`diskcache.Cache` directory.

    Rows hold the dumped :class:`~tiercache.models.ResponseSnapshot` and the
    write time; :mod:`diskcache` handles expiry. Blocking calls run in a
    worker thread so the event loop is never held up by disk I/O. Rows that
    no longer validate as a snapshot read as absent.

    Args:
        directory: Directory for the :mod:`diskcache` files. Created on
            :meth:`start` if missing.

    Example::

        store = DiskStore("/tmp/tiercache")
        await store.start()
        try:
            client.use(max_age(store))
            ...
        finally:
            await store.stop()
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._cache: Optional[diskcache.Cache] = None

    @property
    def directory(self) -> Path:
        return self._directory

    async def start(self) -> None:
        """Open the underlying cache. Calling it twice is a no-op."""
        if self._cache is None:
            self._cache = await asyncio.to_thread(diskcache.Cache, str(self._directory))

    async def stop(self) -> None:
        """Close the underlying cache and release file handles."""
        if self._cache is not None:
            cache, self._cache = self._cache, None
            await asyncio.to_thread(cache.close)

    async def get(self, key: CacheKey) -> Optional[CacheEntry]:
        cache = self._require()
        row, expire_time = await asyncio.to_thread(
            cache.get, (key.segment, key.id), None, False, True
        )
        if row is None:
            return None
        try:
            item = ResponseSnapshot.model_validate(row["item"])
            stored = int(row["stored"])
        except (ValidationError, KeyError, TypeError, ValueError):
            logger.debug("Ignoring unreadable row for %s", key.id)
            return None
        if expire_time is None:
            return None
        remaining = int(expire_time * 1000) - _now_ms()
        if remaining <= 0:
            return None
        return CacheEntry(item=item, ttl=remaining, stored=stored)

    async def set(self, key: CacheKey, item: ResponseSnapshot, ttl: int) -> None:
        cache = self._require()
        row = {"item": item.model_dump(mode="json"), "stored": _now_ms()}
        await asyncio.to_thread(cache.set, (key.segment, key.id), row, ttl / 1000)

    async def drop(self, key: CacheKey) -> None:
        cache = self._require()
        await asyncio.to_thread(cache.delete, (key.segment, key.id))

    def clear(self) -> int:
        """Remove all entries and return how many were removed."""
        return self._require().clear()

    def stats(self) -> dict[str, Any]:
        """Return ``directory`` and ``size`` (entries, expired ones included)."""
        return {
            "directory": str(self._directory),
            "size": len(self._require()),
        }

    def _require(self) -> diskcache.Cache:
        if self._cache is None:
            raise StoreError(f"Store at {self._directory} is not started")
        return self._cache

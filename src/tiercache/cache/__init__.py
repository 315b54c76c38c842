"""Building blocks of a cache tier.

* :mod:`~tiercache.cache.keys` -- cache key derivation.
* :mod:`~tiercache.cache.freshness` -- ``max-age`` TTL and status checks.
* :mod:`~tiercache.cache.store` -- the store contract and bundled stores.
* :mod:`~tiercache.cache.reader` -- timeout-bounded lookups.
* :mod:`~tiercache.cache.writer` -- fire-and-forget writes.

:class:`~tiercache.middleware.CacheMiddleware` composes them per request.
"""

from tiercache.cache.freshness import get_max_age, is_storable_status, storage_ttl
from tiercache.cache.keys import SEGMENT, build_key
from tiercache.cache.reader import LookupResult, Outcome, lookup
from tiercache.cache.store import CacheStore, DiskStore, MemoryStore
from tiercache.cache.writer import CacheWriter, write

__all__ = [
    "SEGMENT",
    "CacheStore",
    "CacheWriter",
    "DiskStore",
    "LookupResult",
    "MemoryStore",
    "Outcome",
    "build_key",
    "get_max_age",
    "is_storable_status",
    "lookup",
    "storage_ttl",
    "write",
]

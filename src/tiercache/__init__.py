"""tiercache -- max-age response caching tiers for an async HTTP pipeline.

This package decides, per request, whether a response may be served from a
cache store instead of contacting the origin, and whether a freshly fetched
response should be written back.  Freshness follows the ``max-age``
directive of the ``cache-control`` header.  Several tiers (for example an
in-process store in front of a shared disk store) can be stacked on the same
client.

Typical usage::

    from tiercache import AsyncClient, MemoryStore, max_age

    async with AsyncClient() as client:
        client.use(max_age(MemoryStore(), timeout=50, ignore_cache_errors=True))
        res = await client.get("https://api.example.com/users")

Modules:
    middleware: The caching middleware and its :func:`max_age` factory.
    cache: Key builder, freshness policy, stores, reader, and writer.
    events: Process-wide publish/subscribe stream of cache outcomes.
    client: The async request pipeline the middleware installs into.
    models: Pydantic models shared across the entire package.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer application and CLI entry point.
"""

__version__ = "1.0.0"

from tiercache.cache.store import CacheStore, DiskStore, MemoryStore  # noqa: E402
from tiercache.client.async_client import AsyncClient  # noqa: E402
from tiercache.events import EventStream, events  # noqa: E402
from tiercache.middleware import CacheMiddleware, max_age  # noqa: E402

__all__ = [
    "AsyncClient",
    "CacheMiddleware",
    "CacheStore",
    "DiskStore",
    "EventStream",
    "MemoryStore",
    "events",
    "max_age",
]

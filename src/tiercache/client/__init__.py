"""Async request pipeline that cache tiers are installed into.

Exports :class:`AsyncClient`, the per-request :class:`RequestContext`,
and :func:`resolve_url`, which produces the exact wire URL middleware key on.
"""

from tiercache.client.async_client import AsyncClient
from tiercache.client.context import RequestContext, resolve_url

__all__ = ["AsyncClient", "RequestContext", "resolve_url"]

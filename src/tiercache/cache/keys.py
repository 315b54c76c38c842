"""Cache key derivation.

Keys are two-part (:class:`~tiercache.models.CacheKey`): a segment that
pins the stored shape to the package version, and an id of
``METHOD:URL``.  The URL must already be resolved, query string included,
exactly as it goes on the wire -- see
:func:`tiercache.client.context.resolve_url`.
"""

from __future__ import annotations

from tiercache import __version__
from tiercache.models import CacheKey

SEGMENT = f"tiercache:{__version__}:body"


def build_key(method: str, url: str) -> CacheKey:
    """Return the key for a request.

    Args:
        method: HTTP method; case-insensitive.
        url: The fully resolved request URL.

    Returns:
        The :class:`~tiercache.models.CacheKey` for ``METHOD:URL`` in the
        current version segment.
    """
    return CacheKey(segment=SEGMENT, id=f"{method.upper()}:{url}")

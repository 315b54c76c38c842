"""Freshness policy: how long a response may be stored, and whether at all.

Two independent checks decide storage:

* **TTL** -- the ``max-age`` directive of ``cache-control`` in seconds,
  converted to milliseconds. Absent, malformed, or zero means "do not
  store" (``None``), never a zero TTL. A response served by another cache
  tier carries its remaining ``ttl`` and that value wins over the header.
* **Status** -- 5xx responses are never stored; 2xx, 3xx and 4xx are.
"""

from __future__ import annotations

import re
from typing import Mapping, Optional

from tiercache.models import Response, header_value

_DELTA_SECONDS = re.compile(r"^\d+$")


def parse_cache_control(value: str) -> dict[str, Optional[str]]:
    """Split a ``cache-control`` value into ``{directive: argument}``.

    Directive names are lower-cased; arguments are unquoted. Directives
    without an argument (``no-store``) map to ``None``.
    """
    directives: dict[str, Optional[str]] = {}
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, arg = part.partition("=")
        name = name.strip().lower()
        directives[name] = arg.strip().strip('"') if sep else None
    return directives


def get_max_age(headers: Mapping[str, str]) -> Optional[int]:
    """Return ``max-age`` in milliseconds, or ``None`` when it cannot be stored.

    Args:
        headers: Response headers; the name lookup is case-insensitive.

    Returns:
        A positive TTL in milliseconds, or ``None`` if the header is
        missing, the directive is absent or non-numeric, or its value is 0.
    """
    cache_control = header_value(headers, "cache-control")
    if cache_control is None:
        return None
    raw = parse_cache_control(cache_control).get("max-age")
    if raw is None or not _DELTA_SECONDS.match(raw):
        return None
    seconds = int(raw)
    if seconds == 0:
        return None
    return seconds * 1000


def is_storable_status(status_code: int) -> bool:
    """Server errors would poison the tier for the whole window; everything else may be kept."""
    return status_code < 500


def get_ttl(res: Response) -> Optional[int]:
    """TTL in milliseconds for *res*, ignoring status.

    A ``ttl`` carried from another tier takes precedence over the header.
    """
    if res.ttl is not None:
        return res.ttl if res.ttl > 0 else None
    return get_max_age(res.headers)


def storage_ttl(res: Response) -> Optional[int]:
    """Combine both checks: the TTL to write *res* with, or ``None`` to skip it."""
    if not is_storable_status(res.status_code):
        return None
    return get_ttl(res)

"""Publish/subscribe stream of cache outcomes.

Every cache tier reports what happened to each lookup on an
:class:`EventStream`: ``cache.hit``, ``cache.miss``, ``cache.timeout`` or
``cache.error``.  A tier configured with a ``name`` additionally emits
``cache.<name>.<kind>`` so several tiers in one process can be observed
separately.  Listeners receive the
:class:`~tiercache.client.context.RequestContext` of the request.

:data:`events` is the process-wide default stream. Listeners registered on
it live as long as the process; tiers that need isolation (tests, the CLI)
are handed their own stream.

Example::

    from tiercache import events

    events.on("cache.hit", lambda ctx: print("served from cache:", ctx.url))
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from tiercache.client.context import RequestContext

logger = logging.getLogger(__name__)

HIT = "hit"
MISS = "miss"
TIMEOUT = "timeout"
ERROR = "error"

EVENT_KINDS = (HIT, MISS, TIMEOUT, ERROR)

Listener = Callable[["RequestContext"], object]


def event_names(kind: str, name: Optional[str] = None) -> list[str]:
    """Return the event names a tier emits for *kind*.

    >>> event_names("miss", "ceych")
    ['cache.miss', 'cache.ceych.miss']
    """
    if kind not in EVENT_KINDS:
        raise ValueError(f"Unknown cache event kind: {kind}")
    names = [f"cache.{kind}"]
    if name:
        names.append(f"cache.{name}.{kind}")
    return names


class EventStream:
    """Multi-listener event stream, safe to emit on from concurrent requests.

    Listeners are called synchronously, in registration order, at emission
    time. A listener that raises is logged and skipped; it never fails the
    request that emitted the event.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._lock = Lock()

    def on(self, name: str, listener: Listener) -> Listener:
        """Register *listener* for *name* and return it."""
        with self._lock:
            self._listeners.setdefault(name, []).append(listener)
        return listener

    def off(self, name: str, listener: Listener) -> None:
        """Remove one registration of *listener*; unknown listeners are ignored."""
        with self._lock:
            registered = self._listeners.get(name, [])
            if listener in registered:
                registered.remove(listener)

    def listeners(self, name: str) -> list[Listener]:
        with self._lock:
            return list(self._listeners.get(name, []))

    def listener_count(self, name: str) -> int:
        with self._lock:
            return len(self._listeners.get(name, []))

    def emit(self, name: str, ctx: RequestContext) -> None:
        """Deliver *ctx* to every listener currently registered for *name*."""
        for listener in self.listeners(name):
            try:
                listener(ctx)
            except Exception:
                logger.exception("Listener for %s failed", name)

    def emit_cache_event(
        self, kind: str, ctx: RequestContext, name: Optional[str] = None
    ) -> None:
        """Emit ``cache.<kind>`` and, when *name* is set, ``cache.<name>.<kind>``."""
        for event in event_names(kind, name):
            self.emit(event, ctx)


events = EventStream()

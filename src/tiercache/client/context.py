"""Per-request context threaded through the middleware chain.

The client creates one :class:`RequestContext` per call. Middleware read
the request fields, may short-circuit by filling :attr:`RequestContext.res`
themselves, and see the origin's response in the same field after
``call_next`` returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol

import httpx

from tiercache.models import Response


@dataclass
class RequestContext:
    """Mutable context object owned by the pipeline.

    Attributes:
        method: HTTP method, upper-cased (e.g. ``"GET"``).
        url: The fully resolved request URL, query string included.
        headers: Request headers dict.
        body: Optional request body (``json``, ``content`` or ``data``
            keyword for httpx, as a one-item dict).
        res: The response, once a middleware or the origin produced one.
        state: Free-form pipeline metadata; middleware may annotate it.
    """

    method: str = "GET"
    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[dict[str, Any]] = None
    res: Optional[Response] = None
    state: dict[str, Any] = field(default_factory=dict)


CallNext = Callable[[RequestContext], Awaitable[None]]


class Middleware(Protocol):
    """An installable pipeline stage.

    Call ``await call_next(ctx)`` to let the request proceed; return
    without calling it (after setting ``ctx.res``) to short-circuit.
    """

    async def __call__(self, ctx: RequestContext, call_next: CallNext) -> None: ...


def resolve_url(url: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Merge *params* into *url* exactly as httpx does on the wire.

    ``resolve_url("http://a/p?d=ank")`` and
    ``resolve_url("http://a/p", {"d": "ank"})`` return the same string, as do
    ``resolve_url("http://a")`` and ``resolve_url("http://a/")``.
    """
    resolved = httpx.URL(url)
    if params:
        resolved = resolved.copy_merge_params(params)
    if resolved.is_absolute_url:
        # An empty path goes on the wire as "/"; spell it out so both forms key alike.
        resolved = resolved.copy_with(raw_path=resolved.raw_path)
    return str(resolved)

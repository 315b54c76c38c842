"""Asynchronous HTTP client with an installable middleware chain.

This module provides :class:`AsyncClient`, the request pipeline cache tiers
are installed into. It wraps :class:`httpx.AsyncClient` and layers on:

- **Middleware** -- async callables installed with :meth:`AsyncClient.use`
  that run around the origin fetch and may short-circuit it.
- **Query resolution** -- structured params are merged into the URL before
  the chain runs, so middleware see the exact wire URL.
- **Error mapping** -- transport failures become
  :class:`~tiercache.exceptions.OriginError`.

HTTP error statuses are responses, not exceptions; callers inspect
``status_code`` themselves.

See Also:
    :class:`~tiercache.middleware.CacheMiddleware` -- the cache tier.
"""

from __future__ import annotations

import base64
import time
from typing import Any, Optional

import httpx

from tiercache.client.context import CallNext, Middleware, RequestContext, resolve_url
from tiercache.exceptions import OriginError
from tiercache.models import Response


class AsyncClient:
    """Asynchronous HTTP client for origin calls behind cache tiers.

    Must be used as an async context manager so that the underlying
    transport is properly opened and closed. Middleware run in installation
    order: the first one installed sees the request first and the response
    last.

    Args:
        base_url: Prefix for relative request URLs.
        timeout: Origin request timeout in seconds.
        verify_ssl: Verify TLS certificates.
        transport: Optional httpx transport (e.g. :class:`httpx.MockTransport`).

    Example::

        async with AsyncClient() as client:
            client.use(max_age(near_store)).use(max_age(far_store))
            res = await client.get("https://api.example.com/users", params={"page": 2})
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 30,
        verify_ssl: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._transport = transport
        self._middleware: list[Middleware] = []
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncClient:
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            verify=self._verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Middleware
    # ------------------------------------------------------------------ #

    def use(self, middleware: Middleware) -> AsyncClient:
        """Install *middleware* innermost of those already installed and return the client."""
        self._middleware.append(middleware)
        return self

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        body: Optional[str] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> Response:
        """Run a request through the middleware chain and return its response.

        Args:
            method: HTTP method (GET, HEAD, POST, PUT, PATCH, DELETE).
            url: Absolute URL, or a path appended to ``base_url``.
            params: Query parameters, merged into the URL.
            headers: Request headers.
            json_body: JSON-serialisable body.
            body: Raw string body.
            data: Form-encoded body.

        Returns:
            The :class:`~tiercache.models.Response`, served by a cache tier
            or fetched from the origin.

        Raises:
            OriginError: On network / transport errors talking to the origin.
            CacheError: When a cache tier fails and is not configured to
                ignore cache errors.
        """
        full_url = f"{self._base_url}{url}" if self._base_url else url
        ctx = RequestContext(
            method=method.upper(),
            url=resolve_url(full_url, params),
            headers=dict(headers or {}),
            body=self._request_body(json_body, body, data),
        )
        await self._dispatch(0, ctx)
        assert ctx.res is not None, "Middleware chain finished without a response"
        return ctx.res

    async def get(self, url: str, **kwargs: Any) -> Response:
        """Send a GET request. ``kwargs`` are forwarded to :meth:`request`."""
        return await self.request("GET", url, **kwargs)

    async def head(self, url: str, **kwargs: Any) -> Response:
        """Send a HEAD request. ``kwargs`` are forwarded to :meth:`request`."""
        return await self.request("HEAD", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Response:
        """Send a POST request. ``kwargs`` are forwarded to :meth:`request`."""
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> Response:
        """Send a PUT request. ``kwargs`` are forwarded to :meth:`request`."""
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> Response:
        """Send a PATCH request. ``kwargs`` are forwarded to :meth:`request`."""
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Response:
        """Send a DELETE request. ``kwargs`` are forwarded to :meth:`request`."""
        return await self.request("DELETE", url, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _dispatch(self, index: int, ctx: RequestContext) -> None:
        """Run middleware *index* with a continuation to the rest of the chain."""
        if index == len(self._middleware):
            await self._fetch_origin(ctx)
            return

        async def call_next(next_ctx: RequestContext) -> None:
            await self._dispatch(index + 1, next_ctx)

        next_step: CallNext = call_next
        await self._middleware[index](ctx, next_step)

    async def _fetch_origin(self, ctx: RequestContext) -> None:
        """Send the request to the origin and store the result on *ctx*."""
        assert self._client is not None, "Client not initialised -- use as async context manager"

        start = time.perf_counter()
        try:
            response = await self._client.request(
                ctx.method, ctx.url, headers=ctx.headers, **(ctx.body or {})
            )
        except httpx.TransportError as exc:
            raise OriginError(f"Request to {ctx.url} failed: {exc}") from exc
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        body, encoding = _capture_body(response.content)
        ctx.res = Response(
            body=body,
            body_encoding=encoding,
            headers=dict(response.headers),
            status_code=response.status_code,
            url=str(response.url),
            elapsed_time=elapsed_ms,
        )

    @staticmethod
    def _request_body(
        json_body: Any, body: str | None, data: dict[str, Any] | None
    ) -> Optional[dict[str, Any]]:
        if data is not None:
            return {"data": data}
        if json_body is not None:
            return {"json": json_body}
        if body is not None:
            return {"content": body}
        return None


def _capture_body(content: bytes) -> tuple[str, str]:
    """Return ``(body, body_encoding)`` storing *content* without loss."""
    try:
        return content.decode("utf-8"), "text"
    except UnicodeDecodeError:
        return base64.b64encode(content).decode("ascii"), "base64"

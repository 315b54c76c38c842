"""Response formatting bridge -- maps a :class:`~tiercache.models.Response` to the output system.

After ``tiercache fetch`` completes, :func:`format_api_response` writes the
status line and, optionally, the headers to stderr and routes the body
through :meth:`~tiercache.output.OutputManager.format_response`.

See Also:
    :mod:`tiercache.output` -- the output manager that renders data.
"""

from __future__ import annotations

from typing import Any

from tiercache.models import Response
from tiercache.output import get_output


def format_api_response(res: Response, include_headers: bool = False) -> None:
    """Format and print *res* using the global output system.

    Args:
        res: The response to display.
        include_headers: Also print every response header to stderr.
    """
    output = get_output()

    source = f"cache, ttl {res.ttl}ms" if res.ttl is not None else f"origin, {res.elapsed_time}ms"
    output.info(f"HTTP {res.status_code} ({source})")
    if include_headers:
        for name, value in res.headers.items():
            output.info(f"{name}: {value}")

    data = extract_response_data(res)
    if data is not None:
        output.format_response(data, res.header("content-type") or "application/json")


def extract_response_data(res: Response) -> Any:
    """Return the body as decoded JSON, the raw text if it is not JSON, or ``None`` if empty.

    A binary body is summarised rather than written to the terminal.
    """
    if not res.body:
        return None
    if res.body_encoding == "base64":
        return f"<binary body, {len(res.content)} bytes>"

    try:
        return res.json()
    except ValueError:
        return res.body

"""Canonical Pydantic models shared across all tiercache modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Cache data models** -- built per request and immutable once built:
    :class:`CacheKey`, :class:`ResponseSnapshot`, :class:`Response`,
    :class:`CacheEntry`, and the per-tier :class:`CacheConfig`.

**CLI settings models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`StoreConfig`, :class:`OutputConfig`,
    and :class:`GlobalConfig`.

All models use Pydantic v2 with ``model_config``. Cache data models are
frozen so that a snapshot handed to a store can never be mutated by a later
middleware.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def header_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Look a header up by *name*, ignoring the case of the stored names."""
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


# --- Cache data ---


class CacheKey(BaseModel):
    """Two-part key under which a response is stored.

    ``segment`` is a namespace that embeds the package version, so entries
    written by an incompatible release are never read back. ``id`` is
    ``METHOD:URL`` with the fully resolved request URL.
    """

    model_config = ConfigDict(frozen=True)

    segment: str
    id: str


class ResponseSnapshot(BaseModel):
    """The serialisable capture of an origin response that a store holds.

    Example::

        ResponseSnapshot(
            body="I am a string!",
            headers={"cache-control": "max-age=60"},
            status_code=200,
            url="http://www.example.com/",
            elapsed_time=40,
        )

    A body that is valid UTF-8 is kept as text. Anything else (images,
    archives, other charsets) is kept base64-encoded with
    ``body_encoding="base64"``. :attr:`content` returns the exact bytes the
    origin sent in both cases.
    """

    model_config = ConfigDict(frozen=True)

    body: str = ""
    body_encoding: Literal["text", "base64"] = "text"
    headers: dict[str, str] = Field(default_factory=dict)
    status_code: int
    url: str
    elapsed_time: int = Field(default=0, description="Origin round trip in ms")

    @property
    def content(self) -> bytes:
        """The body as raw bytes."""
        if self.body_encoding == "base64":
            return base64.b64decode(self.body)
        return self.body.encode("utf-8")

    def header(self, name: str) -> Optional[str]:
        return header_value(self.headers, name)

    def json(self) -> Any:  # type: ignore[override]
        """Decode the body as JSON."""
        return json.loads(self.content)


class Response(ResponseSnapshot):
    """A response as seen by the pipeline, fresh from the origin or from a tier.

    Identical in shape to :class:`ResponseSnapshot` plus ``ttl``: the
    remaining freshness in milliseconds when the response was served by a
    cache tier, ``None`` when it came from the origin. An outer tier stores
    such a response with the carried ``ttl`` rather than the full
    ``max-age`` window.
    """

    ttl: Optional[int] = None

    @classmethod
    def from_entry(cls, entry: CacheEntry) -> Response:
        """Build the response served for a cache hit."""
        return cls(**entry.item.model_dump(), ttl=entry.ttl)

    def to_snapshot(self) -> ResponseSnapshot:
        """Drop the transient ``ttl`` and return the storable snapshot."""
        return ResponseSnapshot(**self.model_dump(exclude={"ttl"}))


class CacheEntry(BaseModel):
    """What a store returns on a hit.

    ``ttl`` is the remaining freshness in milliseconds at read time and
    ``stored`` the epoch millisecond the entry was written, so
    ``stored + ttl`` approximates the absolute expiry.
    """

    model_config = ConfigDict(frozen=True)

    item: ResponseSnapshot
    ttl: int
    stored: int


class CacheConfig(BaseModel):
    """Per-tier options, fixed when the middleware is constructed.

    Example::

        CacheConfig(timeout=50, ignore_cache_errors=True, name="near")
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout: Optional[int] = Field(
        default=None, gt=0, description="Lookup bound in milliseconds; None waits forever"
    )
    ignore_cache_errors: bool = Field(
        default=False,
        description="Degrade lookup timeouts and errors to a miss instead of failing",
    )
    name: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Also emit cache.<name>.<kind> events for this tier",
    )
    methods: tuple[str, ...] = Field(
        default=("GET", "HEAD"), description="Request methods the tier caches"
    )

    @field_validator("methods")
    @classmethod
    def _upper_methods(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(m.upper() for m in value)


# --- CLI settings ---


class RequestConfig(BaseModel):
    """Origin request settings used by ``tiercache fetch``."""

    timeout: float = Field(default=30, description="Origin request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class StoreConfig(BaseModel):
    """Where the CLI keeps its persistent cache tier."""

    directory: Optional[str] = Field(
        default=None,
        description="Store directory; defaults to <cache dir>/responses",
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class TierSettings(BaseModel):
    """Mutable, file-backed twin of :class:`CacheConfig` for the CLI tier."""

    timeout: Optional[int] = Field(default=None, gt=0)
    ignore_cache_errors: bool = False
    name: Optional[str] = Field(default=None, min_length=1)

    def to_cache_config(self) -> CacheConfig:
        return CacheConfig(
            timeout=self.timeout,
            ignore_cache_errors=self.ignore_cache_errors,
            name=self.name,
        )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/tiercache/config.json``.

    Loaded and saved by :func:`~tiercache.config.load_global_config` and
    :func:`~tiercache.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by environment variables or CLI
    flags. See :func:`~tiercache.config.resolve_config` for the full
    precedence chain.
    """

    cache: TierSettings = Field(default_factory=TierSettings)
    store: StoreConfig = Field(default_factory=StoreConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

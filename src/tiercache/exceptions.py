"""Exception hierarchy for tiercache.

All exceptions inherit from :class:`TiercacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`tiercache.exit_codes`.
The top-level error handler in :func:`tiercache.app.main` catches
``TiercacheError`` and exits with the appropriate code.

Failures are attributable: anything raised by the caching layer derives from
:class:`CacheError`, while failures of the origin fetch are
:class:`OriginError` and pass through the caching layer untouched.

Subclass hierarchy::

    TiercacheError (exit 1)
    +-- InvalidUsageError     (exit 2)
    +-- ConfigError           (exit 1)
    +-- CacheError            (exit 4)
    |   +-- CacheTimeoutError (exit 3)
    |   +-- CacheReadError    (exit 4)
    |   +-- CacheWriteError   (exit 4)
    |   +-- StoreError        (exit 4)
    +-- OriginError           (exit 5)
"""

from tiercache.exit_codes import (
    EXIT_CACHE_ERROR,
    EXIT_CACHE_TIMEOUT,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_ORIGIN_ERROR,
)


class TiercacheError(Exception):
    """Base exception for all tiercache errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`tiercache.exit_codes`. The CLI entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(TiercacheError):
    """Raised for invalid CLI arguments (malformed ``key=value`` params or headers)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(TiercacheError):
    """Raised for configuration problems (invalid JSON, bad values in env vars)."""

    exit_code = EXIT_GENERIC_FAILURE


class CacheError(TiercacheError):
    """Base class for failures raised by the caching layer."""

    exit_code = EXIT_CACHE_ERROR


class CacheTimeoutError(CacheError):
    """Raised when a cache lookup does not settle within the configured timeout.

    The message names the configured bound, e.g. ``Cache timed out after 10``.

    Args:
        timeout: The configured lookup bound in milliseconds.
    """

    exit_code = EXIT_CACHE_TIMEOUT

    def __init__(self, timeout: int):
        super().__init__(f"Cache timed out after {timeout}")
        self.timeout = timeout


class CacheReadError(CacheError):
    """Raised when the store rejects a lookup and errors are not ignored.

    The store's own exception is available as ``__cause__``.
    """


class CacheWriteError(CacheError):
    """Raised inside the writer when a store write fails. Never reaches callers."""


class StoreError(CacheError):
    """Raised by the bundled stores when used outside their lifecycle."""


class OriginError(TiercacheError):
    """Raised on network-level failures talking to the origin.

    The caching layer never catches this; it reaches the caller exactly as
    the transport produced it.
    """

    exit_code = EXIT_ORIGIN_ERROR

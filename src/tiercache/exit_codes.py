"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~tiercache.exceptions.TiercacheError` subclass.
Shell wrappers can tell a slow cache tier from a dead origin without
parsing stderr.

Example::

    $ tiercache fetch --timeout 5 https://api.example.com/users
    $ echo $?
    3   # EXIT_CACHE_TIMEOUT -- the store did not answer within 5 ms
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_CACHE_TIMEOUT = 3
"""The cache store did not answer a lookup within the configured timeout."""

EXIT_CACHE_ERROR = 4
"""The cache store failed a lookup (or a bundled store was misused)."""

EXIT_ORIGIN_ERROR = 5
"""The origin could not be reached (DNS failure, connection refused, transport timeout)."""

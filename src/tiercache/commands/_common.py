"""Argument parsing and error reporting shared by the CLI commands."""

from __future__ import annotations

from typing import NoReturn, Optional

import typer

from tiercache.exceptions import InvalidUsageError, TiercacheError
from tiercache.output import error


def parse_pairs(values: Optional[list[str]], separator: str, what: str) -> dict[str, str]:
    """Split ``name<separator>value`` strings into a dict.

    Raises:
        InvalidUsageError: If an item has no separator or an empty name.
    """
    pairs: dict[str, str] = {}
    for item in values or []:
        name, sep, value = item.partition(separator)
        if not sep or not name.strip():
            raise InvalidUsageError(f"Invalid {what} '{item}', expected NAME{separator}VALUE")
        pairs[name.strip()] = value.strip() if separator == ":" else value
    return pairs


def exit_with(exc: TiercacheError) -> NoReturn:
    """Report *exc* on stderr and exit with its mapped exit code."""
    error(str(exc))
    raise typer.Exit(code=exc.exit_code)

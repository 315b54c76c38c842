"""CLI configuration with XDG paths, atomic writes, and precedence resolution.

This module handles the persistent settings of the ``tiercache`` CLI:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.tiercache/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- a single :class:`~tiercache.models.GlobalConfig`
  JSON file storing the CLI tier's options, the store directory and origin
  request settings.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the global config into the effective
  configuration.

Library users never need this module: a tier is configured entirely by the
:class:`~tiercache.models.CacheConfig` handed to
:func:`~tiercache.middleware.max_age`.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from tiercache.exceptions import ConfigError
from tiercache.models import GlobalConfig

_APP_NAME = "tiercache"
_CONFIG_FILENAME = "config.json"
_TRUE_VALUES = ("1", "true", "yes", "on")


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform uses the XDG Base Directory layout (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/tiercache/`` (default ``~/.config/tiercache/``).
    On macOS/Windows: ``~/.tiercache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the CLI's persistent store. Its contents can be deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/tiercache/`` (default ``~/.cache/tiercache/``).
    On macOS/Windows: ``~/.tiercache/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/tiercache/`` (default ``~/.local/share/tiercache/``).
    On macOS/Windows: ``~/.tiercache/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_store_dir(config: GlobalConfig) -> Path:
    """Directory of the CLI's :class:`~tiercache.cache.store.DiskStore`."""
    if config.store.directory:
        return Path(config.store.directory)
    return get_cache_dir() / "responses"


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~tiercache.models.GlobalConfig`, or a
        default instance if the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _env_overrides() -> dict[str, Any]:
    """Read ``TIERCACHE_*`` variables into a partial ``cache`` section."""
    overrides: dict[str, Any] = {}
    timeout = os.environ.get("TIERCACHE_TIMEOUT")
    if timeout:
        try:
            overrides["timeout"] = int(timeout)
        except ValueError:
            raise ConfigError(f"TIERCACHE_TIMEOUT must be an integer, got: {timeout}") from None
    ignore = os.environ.get("TIERCACHE_IGNORE_CACHE_ERRORS")
    if ignore:
        overrides["ignore_cache_errors"] = ignore.strip().lower() in _TRUE_VALUES
    name = os.environ.get("TIERCACHE_NAME")
    if name:
        overrides["name"] = name
    return overrides


def resolve_config(
    cli_timeout: Optional[int] = None,
    cli_ignore_cache_errors: Optional[bool] = None,
    cli_name: Optional[str] = None,
    cli_cache_dir: Optional[str] = None,
) -> GlobalConfig:
    """Resolve the effective CLI configuration.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``TIERCACHE_TIMEOUT``,
           ``TIERCACHE_IGNORE_CACHE_ERRORS``, ``TIERCACHE_NAME``,
           ``TIERCACHE_CACHE_DIR``)
        3. User config (``~/.config/tiercache/config.json``)
        4. Defaults

    Raises:
        ConfigError: If the config file or an override is invalid.
    """
    data = load_global_config().model_dump()

    data["cache"].update(_env_overrides())
    env_dir = os.environ.get("TIERCACHE_CACHE_DIR")
    if env_dir:
        data["store"]["directory"] = env_dir

    if cli_timeout is not None:
        data["cache"]["timeout"] = cli_timeout
    if cli_ignore_cache_errors is not None:
        data["cache"]["ignore_cache_errors"] = cli_ignore_cache_errors
    if cli_name is not None:
        data["cache"]["name"] = cli_name
    if cli_cache_dir is not None:
        data["store"]["directory"] = cli_cache_dir

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

"""Tests for tiercache.config -- XDG paths, atomic writes, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from tiercache.config import (
    _atomic_write,
    get_cache_dir,
    get_config_dir,
    get_data_dir,
    get_store_dir,
    global_config_path,
    load_global_config,
    resolve_config,
    save_global_config,
)
from tiercache.exceptions import ConfigError
from tiercache.models import GlobalConfig, StoreConfig, TierSettings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("tiercache.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "tiercache"
        assert result.is_dir()

    def test_cache_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_cache"
        monkeypatch.setattr("tiercache.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CACHE_HOME", str(custom))

        result = get_cache_dir()
        assert result == custom / "tiercache"
        assert result.is_dir()

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("tiercache.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".local" / "share" / "tiercache"

    def test_fallback_paths(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("tiercache.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".tiercache"
        assert get_cache_dir() == tmp_path / ".tiercache" / "cache"
        assert get_data_dir() == tmp_path / ".tiercache" / "logs"


class TestStoreDir:
    def test_default_under_cache_dir(self, isolated_config: Path) -> None:
        assert get_store_dir(GlobalConfig()) == isolated_config / "cache" / "tiercache" / "responses"

    def test_configured_directory(self, isolated_config: Path) -> None:
        config = GlobalConfig(store=StoreConfig(directory="/srv/responses"))
        assert get_store_dir(config) == Path("/srv/responses")


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "sub" / "file.json"
        _atomic_write(target, '{"a": 1}')
        assert target.read_text(encoding="utf-8") == '{"a": 1}'

    def test_replaces_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_text("old")
        _atomic_write(target, "new")
        assert target.read_text() == "new"

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        _atomic_write(tmp_path / "file.json", "data")
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_missing_file_gives_defaults(self, isolated_config: Path) -> None:
        assert load_global_config() == GlobalConfig()

    def test_save_and_load(self, isolated_config: Path) -> None:
        config = GlobalConfig(cache=TierSettings(timeout=50, name="cli"))
        save_global_config(config)
        assert load_global_config() == config

    def test_invalid_json(self, isolated_config: Path) -> None:
        global_config_path().write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_invalid_values(self, isolated_config: Path) -> None:
        _write_json(global_config_path(), {"cache": {"timeout": -5}})
        with pytest.raises(ConfigError):
            load_global_config()


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config()
        assert config.cache.timeout is None
        assert config.cache.ignore_cache_errors is False
        assert config.store.directory is None

    def test_file_values(self, isolated_config: Path) -> None:
        _write_json(global_config_path(), {"cache": {"timeout": 40, "name": "disk"}})
        config = resolve_config()
        assert config.cache.timeout == 40
        assert config.cache.name == "disk"

    def test_env_overrides_file(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(global_config_path(), {"cache": {"timeout": 40}})
        monkeypatch.setenv("TIERCACHE_TIMEOUT", "25")
        monkeypatch.setenv("TIERCACHE_IGNORE_CACHE_ERRORS", "yes")
        monkeypatch.setenv("TIERCACHE_NAME", "env")
        monkeypatch.setenv("TIERCACHE_CACHE_DIR", "/tmp/env-store")

        config = resolve_config()
        assert config.cache.timeout == 25
        assert config.cache.ignore_cache_errors is True
        assert config.cache.name == "env"
        assert config.store.directory == "/tmp/env-store"

    def test_cli_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TIERCACHE_TIMEOUT", "25")
        monkeypatch.setenv("TIERCACHE_IGNORE_CACHE_ERRORS", "1")
        config = resolve_config(
            cli_timeout=5, cli_ignore_cache_errors=False, cli_name="cli", cli_cache_dir="/x"
        )
        assert config.cache.timeout == 5
        assert config.cache.ignore_cache_errors is False
        assert config.cache.name == "cli"
        assert config.store.directory == "/x"

    def test_non_integer_env_timeout(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TIERCACHE_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="TIERCACHE_TIMEOUT must be an integer"):
            resolve_config()

    def test_invalid_override(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid configuration"):
            resolve_config(cli_timeout=0)

    def test_resolved_tier(self, isolated_config: Path) -> None:
        tier = resolve_config(cli_timeout=20, cli_ignore_cache_errors=True).cache.to_cache_config()
        assert tier.timeout == 20
        assert tier.ignore_cache_errors is True
        assert tier.methods == ("GET", "HEAD")

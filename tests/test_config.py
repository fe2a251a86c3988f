"""Tests for opencivic.config: XDG paths, atomic writes, properties, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from opencivic.config import (
    _atomic_write,
    get_cache_dir,
    get_config_dir,
    get_data_dir,
    load_project_properties,
    load_properties,
    load_user_settings,
    resolve_settings,
    save_user_settings,
)
from opencivic.exceptions import ConfigError
from opencivic.models import DEFAULT_BASE_URL, Settings


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("opencivic.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "opencivic"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("opencivic.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        assert get_config_dir() == custom / "opencivic"

    def test_cache_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("opencivic.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_cache_dir()
        assert result == tmp_path / ".cache" / "opencivic"
        assert result.is_dir()

    def test_data_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_data"
        monkeypatch.setattr("opencivic.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(custom))

        assert get_data_dir() == custom / "opencivic"


class TestXDGPathsFallback:
    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("opencivic.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".opencivic"

    def test_cache_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("opencivic.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_cache_dir() == tmp_path / ".opencivic" / "cache"

    def test_data_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("opencivic.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".opencivic" / "logs"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        target.write_text("old content", encoding="utf-8")
        _atomic_write(target, "new content")
        assert target.read_text(encoding="utf-8") == "new content"

    def test_no_temp_files_left_on_success(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "content")
        assert list(tmp_path.iterdir()) == [target]

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        with patch("opencivic.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# User settings
# ---------------------------------------------------------------------------


class TestUserSettings:
    def test_defaults_when_missing(self, isolated_config: Path) -> None:
        settings = load_user_settings()
        assert settings == Settings()
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.cache_dir is None

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        original = Settings(api_key="abc", cache_dir="/tmp/ocd", timeout=10)
        path = save_user_settings(original)
        assert path == isolated_config / "config" / "opencivic" / "config.json"
        assert load_user_settings() == original

    def test_only_non_defaults_are_written(self, isolated_config: Path) -> None:
        path = save_user_settings(Settings(api_key="abc"))
        assert json.loads(path.read_text(encoding="utf-8")) == {"api_key": "abc"}

    def test_invalid_json(self, isolated_config: Path) -> None:
        path = isolated_config / "config" / "opencivic" / "config.json"
        path.parent.mkdir(parents=True)
        path.write_text("{broken", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_user_settings()

    def test_invalid_schema(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "config" / "opencivic" / "config.json", {"timeout": "soon"})
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_user_settings()


# ---------------------------------------------------------------------------
# Properties files
# ---------------------------------------------------------------------------


class TestProperties:
    def test_parse_formats(self, tmp_path: Path) -> None:
        path = tmp_path / "x.properties"
        path.write_text(
            "# comment\n"
            "! another comment\n"
            "\n"
            "apikey=abc123\n"
            "cache : /var/cache/ocd\n"
            "server=http://localhost:8000\n"
            "flag\n",
            encoding="utf-8",
        )
        assert load_properties(path) == {
            "apikey": "abc123",
            "cache": "/var/cache/ocd",
            "server": "http://localhost:8000",
            "flag": "",
        }

    def test_unreadable_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read properties file"):
            load_properties(tmp_path / "missing.properties")

    def test_project_properties_missing(self, isolated_config: Path) -> None:
        assert load_project_properties() == {}

    def test_project_properties_mapping(self, isolated_config: Path) -> None:
        (isolated_config / "opencivicdata.properties").write_text(
            "apikey=abc\ncache=\nunrelated=1\n", encoding="utf-8"
        )
        assert load_project_properties() == {"api_key": "abc"}


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveSettings:
    def test_defaults(self, isolated_config: Path) -> None:
        settings = resolve_settings()
        assert settings.api_key is None
        assert settings.cache_dir is None
        assert settings.base_url == DEFAULT_BASE_URL

    def test_user_settings(self, isolated_config: Path) -> None:
        save_user_settings(Settings(api_key="from-user", cache_dir="/user/cache"))
        settings = resolve_settings()
        assert settings.api_key == "from-user"
        assert settings.cache_dir == "/user/cache"

    def test_properties_override_user_settings(self, isolated_config: Path) -> None:
        save_user_settings(Settings(api_key="from-user", cache_dir="/user/cache"))
        (isolated_config / "opencivicdata.properties").write_text(
            "apikey=from-props\n", encoding="utf-8"
        )
        settings = resolve_settings()
        assert settings.api_key == "from-props"
        assert settings.cache_dir == "/user/cache"

    def test_env_overrides_properties(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (isolated_config / "opencivicdata.properties").write_text(
            "apikey=from-props\ncache=/props/cache\n", encoding="utf-8"
        )
        monkeypatch.setenv("OPENCIVIC_API_KEY", "from-env")
        monkeypatch.setenv("OPENCIVIC_BASE_URL", "http://env.example")
        settings = resolve_settings()
        assert settings.api_key == "from-env"
        assert settings.cache_dir == "/props/cache"
        assert settings.base_url == "http://env.example"

    def test_explicit_overrides_everything(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("OPENCIVIC_API_KEY", "from-env")
        monkeypatch.setenv("OPENCIVIC_CACHE_DIR", "/env/cache")
        settings = resolve_settings(api_key="explicit", cache_dir="/explicit/cache")
        assert settings.api_key == "explicit"
        assert settings.cache_dir == "/explicit/cache"

    def test_invalid_user_settings_propagate(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "config" / "opencivic" / "config.json", {"verify_ssl": "maybe"})
        with pytest.raises(ConfigError):
            resolve_settings()

"""Tests for apimodel.config -- XDG paths, atomic writes, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from apimodel.config import (
    _atomic_write,
    get_cache_dir,
    get_config_dir,
    get_data_dir,
    load_global_config,
    load_project_config,
    parse_env_flag,
    resolve_config,
    save_global_config,
)
from apimodel.exceptions import ConfigError
from apimodel.models import DocsCacheConfig, GeneratorConfig, GlobalConfig, OutputConfig


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


class TestXDGPathsLinux:
    """XDG paths on Linux (the default XDG platform)."""

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "apimodel"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        result = get_config_dir()
        assert result == custom / "apimodel"
        assert result.is_dir()

    def test_cache_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_cache_dir()
        assert result == tmp_path / ".cache" / "apimodel"
        assert result.is_dir()

    def test_cache_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_cache"
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CACHE_HOME", str(custom))

        result = get_cache_dir()
        assert result == custom / "apimodel"
        assert result.is_dir()

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "apimodel"
        assert result.is_dir()

    def test_data_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_data"
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(custom))

        result = get_data_dir()
        assert result == custom / "apimodel"
        assert result.is_dir()


class TestXDGPathsFallback:
    """Fallback paths on non-XDG platforms (macOS, Windows)."""

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".apimodel"
        assert result.is_dir()

    def test_cache_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_cache_dir()
        assert result == tmp_path / ".apimodel" / "cache"
        assert result.is_dir()

    def test_data_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".apimodel" / "logs"
        assert result.is_dir()



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

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "c" / "test.txt"
        _atomic_write(target, "deep write")
        assert target.read_text(encoding="utf-8") == "deep write"

    def test_no_temp_files_left_on_success(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "content")
        # Only the target file should exist
        files = list(tmp_path.iterdir())
        assert files == [target]

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        with patch("apimodel.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        # No temp files should remain; original target should not exist
        files = list(tmp_path.iterdir())
        assert target not in files
        # Filter to only tmp files (the target shouldn't exist either)
        tmp_files = [f for f in files if ".tmp" in f.name]
        assert tmp_files == []

    def test_unicode_content(self, tmp_path: Path) -> None:
        target = tmp_path / "unicode.txt"
        content = "Hello \u4e16\u754c \U0001f30d \u00e9\u00e0\u00fc\u00f1"
        _atomic_write(target, content)
        assert target.read_text(encoding="utf-8") == content

    def test_empty_content(self, tmp_path: Path) -> None:
        target = tmp_path / "empty.txt"
        _atomic_write(target, "")
        assert target.read_text(encoding="utf-8") == ""


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------



class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        cfg = load_global_config()
        assert cfg == GlobalConfig()
        assert cfg.generator.bounded_integers is True
        assert cfg.generator.docs_cache.ttl_seconds == 86400
        assert cfg.output.format == "auto"

    def test_save_and_load_roundtrip(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        original = GlobalConfig(
            generator=GeneratorConfig(
                bounded_integers=False,
                docs_cache=DocsCacheConfig(enabled=False, ttl_seconds=60),
            ),
            output=OutputConfig(format="json"),
        )
        save_global_config(original)
        loaded = load_global_config()
        assert loaded == original

    def test_load_invalid_json_raises_config_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        config_dir = tmp_path / "apimodel"
        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text("{invalid json!!!", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_load_invalid_schema_raises_config_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        _write_json(tmp_path / "apimodel" / "config.json", {"generator": "not-a-dict"})
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_saved_config_is_valid_json(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apimodel.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        save_global_config(GlobalConfig())
        path = tmp_path / "apimodel" / "config.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert set(data) == {"generator", "output"}
        assert data["generator"]["fetch_external_docs"] is True


# ---------------------------------------------------------------------------
# Project config
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_load_returns_none_when_missing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert load_project_config() is None

    def test_load_valid_project_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        _write_json(tmp_path / "apimodel.json", {"generator": {"emit_docs": False}})

        result = load_project_config()
        assert result == {"generator": {"emit_docs": False}}

    def test_load_invalid_json_raises_config_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / "apimodel.json").write_text("broken{", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config()

    def test_non_object_raises_config_error(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        _write_json(tmp_path / "apimodel.json", ["generator"])

        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_project_config()


# ---------------------------------------------------------------------------
# Environment flags
# ---------------------------------------------------------------------------


class TestParseEnvFlag:
    @pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
    def test_true_spellings(self, raw: str, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APIMODEL_EMIT_DOCS", raw)
        assert parse_env_flag("APIMODEL_EMIT_DOCS") is True

    @pytest.mark.parametrize("raw", ["0", "false", "No", "off"])
    def test_false_spellings(self, raw: str, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APIMODEL_EMIT_DOCS", raw)
        assert parse_env_flag("APIMODEL_EMIT_DOCS") is False

    def test_unset_and_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("APIMODEL_EMIT_DOCS", raising=False)
        assert parse_env_flag("APIMODEL_EMIT_DOCS") is None
        monkeypatch.setenv("APIMODEL_EMIT_DOCS", "")
        assert parse_env_flag("APIMODEL_EMIT_DOCS") is None

    def test_invalid_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APIMODEL_EMIT_DOCS", "maybe")
        with pytest.raises(ConfigError, match="APIMODEL_EMIT_DOCS"):
            parse_env_flag("APIMODEL_EMIT_DOCS")


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveConfig:
    """Test the full precedence chain: CLI > env > project > global > defaults."""

    @pytest.fixture(autouse=True)
    def _isolate(self, isolated_config: Path) -> None:
        self.tmp_path = isolated_config

    def test_defaults(self) -> None:
        cfg = resolve_config()
        assert cfg == GlobalConfig()

    def test_global_config_applies(self) -> None:
        save_global_config(GlobalConfig(generator=GeneratorConfig(bounded_integers=False)))
        assert resolve_config().generator.bounded_integers is False

    def test_project_overrides_global(self) -> None:
        save_global_config(
            GlobalConfig(generator=GeneratorConfig(emit_docs=False, bounded_integers=False))
        )
        _write_json(self.tmp_path / "apimodel.json", {"generator": {"emit_docs": True}})

        cfg = resolve_config()
        assert cfg.generator.emit_docs is True
        # Keys the project file omits keep their global value.
        assert cfg.generator.bounded_integers is False

    def test_invalid_project_values(self) -> None:
        _write_json(self.tmp_path / "apimodel.json", {"generator": {"docs_cache": {"ttl_seconds": "soon"}}})
        with pytest.raises(ConfigError, match="Invalid project config"):
            resolve_config()

    def test_env_overrides_project(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(self.tmp_path / "apimodel.json", {"generator": {"fetch_external_docs": True}})
        monkeypatch.setenv("APIMODEL_FETCH_DOCS", "false")

        assert resolve_config().generator.fetch_external_docs is False

    def test_cli_overrides_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APIMODEL_BOUNDED_INTEGERS", "0")
        cfg = resolve_config(cli_bounded_integers=True)
        assert cfg.generator.bounded_integers is True

    def test_cli_none_leaves_lower_layers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APIMODEL_EMIT_DOCS", "off")
        cfg = resolve_config(cli_emit_docs=None)
        assert cfg.generator.emit_docs is False

    def test_cli_format_overrides_global(self) -> None:
        save_global_config(GlobalConfig(output=OutputConfig(format="plain")))
        assert resolve_config(cli_format="json").output.format == "json"

"""Tests for apibridge.config -- XDG paths, config file, option precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from apibridge.config import (
    config_path,
    get_config_dir,
    get_data_dir,
    load_config,
    resolve_options,
)
from apibridge.exceptions import BridgeError, ErrorKind
from apibridge.models import BridgeConfig, ClientOptions


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
    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apibridge.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
        assert get_config_dir() == tmp_path / "cfg" / "apibridge"

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apibridge.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".config" / "apibridge"

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apibridge.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".apibridge"

    def test_data_dir_is_created(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apibridge.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
        result = get_data_dir()
        assert result == tmp_path / "data" / "apibridge"
        assert result.is_dir()

    def test_config_path_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        target = tmp_path / "elsewhere.json"
        monkeypatch.setenv("APIBRIDGE_CONFIG", str(target))
        assert config_path() == target


# ---------------------------------------------------------------------------
# Config file
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, isolated_config: Path) -> None:
        assert load_config() == BridgeConfig()

    def test_reads_values(self, isolated_config: Path) -> None:
        _write_json(
            config_path(),
            {"url": "https://api.example.com/v1/", "timeout": "30s", "ca_cert": "/etc/ca.pem"},
        )
        cfg = load_config()
        assert cfg.url == "https://api.example.com/v1/"
        assert cfg.timeout == "30s"
        assert cfg.ca_cert == Path("/etc/ca.pem")

    def test_invalid_json(self, isolated_config: Path) -> None:
        path = config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(BridgeError) as exc_info:
            load_config()
        assert exc_info.value.kind is ErrorKind.CONFIG
        assert "\n" not in str(exc_info.value)

    def test_unknown_key_rejected(self, isolated_config: Path) -> None:
        _write_json(config_path(), {"urll": "https://typo.example.com"})
        with pytest.raises(BridgeError) as exc_info:
            load_config()
        assert exc_info.value.kind is ErrorKind.CONFIG
        assert "urll" in str(exc_info.value)


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveOptions:
    def test_cli_values_only(self) -> None:
        opts = resolve_options(url="https://api.example.com", timeout="5s", config=BridgeConfig())
        assert opts == ClientOptions(url="https://api.example.com", timeout="5s")

    def test_cli_overrides_config(self) -> None:
        cfg = BridgeConfig(url="https://config.example.com", timeout="1m")
        opts = resolve_options(url="https://cli.example.com", config=cfg)
        assert opts.url == "https://cli.example.com"
        assert opts.timeout == "1m"

    def test_config_supplies_url(self) -> None:
        cfg = BridgeConfig(url="https://config.example.com")
        assert resolve_options(config=cfg).url == "https://config.example.com"

    def test_missing_url(self) -> None:
        with pytest.raises(BridgeError) as exc_info:
            resolve_options(config=BridgeConfig())
        assert exc_info.value.kind is ErrorKind.USAGE
        assert "--url" in str(exc_info.value)

    def test_cert_without_key_rejected(self) -> None:
        with pytest.raises(BridgeError) as exc_info:
            resolve_options(
                url="https://api.example.com",
                client_cert=Path("client.pem"),
                config=BridgeConfig(),
            )
        assert exc_info.value.kind is ErrorKind.USAGE
        assert "--client-key is required" in str(exc_info.value)

    def test_key_without_cert_rejected(self) -> None:
        with pytest.raises(BridgeError) as exc_info:
            resolve_options(
                url="https://api.example.com",
                client_key=Path("client.key"),
                config=BridgeConfig(),
            )
        assert exc_info.value.kind is ErrorKind.USAGE
        assert "--client-cert is required" in str(exc_info.value)

    def test_identity_pair_taken_from_one_layer(self) -> None:
        cfg = BridgeConfig(client_cert=Path("cfg.pem"), client_key=Path("cfg.key"))
        with pytest.raises(BridgeError) as exc_info:
            resolve_options(
                url="https://api.example.com", client_cert=Path("cli.pem"), config=cfg
            )
        assert exc_info.value.kind is ErrorKind.USAGE

    def test_identity_pair_from_config(self) -> None:
        cfg = BridgeConfig(client_cert=Path("cfg.pem"), client_key=Path("cfg.key"))
        opts = resolve_options(url="https://api.example.com", config=cfg)
        assert opts.client_cert == Path("cfg.pem")
        assert opts.client_key == Path("cfg.key")

    def test_verbose_from_either_layer(self) -> None:
        assert resolve_options(
            url="https://a.example.com", config=BridgeConfig(verbose=True)
        ).verbose
        assert resolve_options(
            url="https://a.example.com", verbose=True, config=BridgeConfig()
        ).verbose

    def test_reads_config_file_by_default(self, isolated_config: Path) -> None:
        _write_json(config_path(), {"url": "https://file.example.com"})
        assert resolve_options().url == "https://file.example.com"

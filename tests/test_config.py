"""Tests for config/config_loader.py."""

from pathlib import Path

import pytest
import yaml

from config.config_loader import AppConfig, DisplayConfig, SourceConfig, load_config
from panel_tracker.errors import ConfigError

_ENV_VARS = ("GOOGLE_SHEET_ID", "FETCH_TIMEOUT_MS", "MAX_FETCH_ATTEMPTS", "REFRESH_INTERVAL_MS")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def minimal_settings(tmp_path: Path) -> Path:
    """Write a minimal valid settings.yaml to a temp path."""
    settings = {
        "source": {
            "sheet_id": "file-sheet-id",
            "timeout_sec": 10,
            "max_attempts": 3,
            "backoff_base_sec": 0.25,
            "proxy_url": "https://proxy.example/?u={url}",
        },
        "refresh": {"interval_sec": 6},
        "display": {"round": "round2", "statuses": ["ongoing", "pending"], "max_panels": 5},
        "output_dir": "./feeds",
    }
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.dump(settings), encoding="utf-8")
    return path


def test_load_config_returns_app_config(minimal_settings):
    config = load_config(minimal_settings)
    assert isinstance(config, AppConfig)
    assert isinstance(config.source, SourceConfig)
    assert isinstance(config.display, DisplayConfig)


def test_load_config_source(minimal_settings):
    source = load_config(minimal_settings).source
    assert source.sheet_id == "file-sheet-id"
    assert source.timeout_sec == 10
    assert source.max_attempts == 3
    assert source.backoff_base_sec == 0.25
    assert source.proxy_url == "https://proxy.example/?u={url}"


def test_load_config_display_and_refresh(minimal_settings):
    config = load_config(minimal_settings)
    assert config.refresh.interval_sec == 6
    assert config.display.round == "round2"
    assert config.display.statuses == ["ongoing", "pending"]
    assert config.display.max_panels == 5
    assert config.output_dir == Path("./feeds")


def test_load_config_defaults_for_empty_file(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text("", encoding="utf-8")
    config = load_config(path)
    assert config.source.sheet_id == ""
    assert config.source.timeout_sec == 15
    assert config.source.max_attempts == 2
    assert config.source.backoff_base_sec == 0.5
    assert "allorigins" in config.source.proxy_url
    assert config.refresh.interval_sec == 4
    assert config.display.statuses == ["ongoing", "beready"]
    assert config.display.max_panels == 3


def test_bundled_settings_load():
    config = load_config()
    assert config.display.round == "round1"


def test_env_overrides(minimal_settings, monkeypatch):
    monkeypatch.setenv("GOOGLE_SHEET_ID", " env-sheet ")
    monkeypatch.setenv("FETCH_TIMEOUT_MS", "2500")
    monkeypatch.setenv("MAX_FETCH_ATTEMPTS", "4")
    monkeypatch.setenv("REFRESH_INTERVAL_MS", "1500")
    config = load_config(minimal_settings)
    assert config.source.sheet_id == "env-sheet"
    assert config.source.timeout_sec == 2.5
    assert config.source.max_attempts == 4
    assert config.refresh.interval_sec == 1.5


def test_env_override_not_integer(minimal_settings, monkeypatch):
    monkeypatch.setenv("MAX_FETCH_ATTEMPTS", "lots")
    with pytest.raises(ConfigError, match="MAX_FETCH_ATTEMPTS"):
        load_config(minimal_settings)


def test_zero_attempts_rejected(minimal_settings, monkeypatch):
    monkeypatch.setenv("MAX_FETCH_ATTEMPTS", "0")
    with pytest.raises(ConfigError):
        load_config(minimal_settings)


def test_max_panels_out_of_range(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.dump({"display": {"max_panels": 11}}), encoding="utf-8")
    with pytest.raises(ConfigError, match="max_panels"):
        load_config(path)


def test_unknown_round_rejected(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.dump({"display": {"round": "round3"}}), encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_invalid_yaml(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text("source: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_load_config_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config(Path("/nonexistent/settings.yaml"))

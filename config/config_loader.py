"""Load settings.yaml into typed dataclasses. Applies environment overrides at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from panel_tracker.errors import ConfigError

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

DEFAULT_PROXY_URL = "https://api.allorigins.win/raw?url={url}"
MIN_PANELS = 1
MAX_PANELS = 10


@dataclass
class SourceConfig:
    sheet_id: str = ""
    timeout_sec: float = 15.0
    max_attempts: int = 2
    backoff_base_sec: float = 0.5
    proxy_url: str = DEFAULT_PROXY_URL


@dataclass
class RefreshConfig:
    interval_sec: float = 4.0


@dataclass
class DisplayConfig:
    round: str = "round1"
    statuses: list[str] = field(default_factory=lambda: ["ongoing", "beready"])
    max_panels: int = 3


@dataclass
class AppConfig:
    source: SourceConfig
    refresh: RefreshConfig
    display: DisplayConfig
    output_dir: Path = Path("./output")


def _env_int(name: str) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Environment variables win over the file:
    GOOGLE_SHEET_ID, FETCH_TIMEOUT_MS, MAX_FETCH_ATTEMPTS, REFRESH_INTERVAL_MS.

    Raises FileNotFoundError if settings file missing, ConfigError on invalid values.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    try:
        with settings_path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {settings_path}: {exc}") from exc

    source_raw = raw.get("source", {}) or {}
    source = SourceConfig(
        sheet_id=str(source_raw.get("sheet_id") or ""),
        timeout_sec=float(source_raw.get("timeout_sec", 15)),
        max_attempts=int(source_raw.get("max_attempts", 2)),
        backoff_base_sec=float(source_raw.get("backoff_base_sec", 0.5)),
        proxy_url=str(source_raw.get("proxy_url") or DEFAULT_PROXY_URL),
    )

    refresh_raw = raw.get("refresh", {}) or {}
    refresh = RefreshConfig(interval_sec=float(refresh_raw.get("interval_sec", 4)))

    display_raw = raw.get("display", {}) or {}
    display = DisplayConfig(
        round=str(display_raw.get("round", "round1")),
        statuses=[str(s) for s in display_raw.get("statuses", ["ongoing", "beready"])],
        max_panels=int(display_raw.get("max_panels", 3)),
    )

    sheet_id = os.environ.get("GOOGLE_SHEET_ID", "").strip()
    if sheet_id:
        source.sheet_id = sheet_id
    timeout_ms = _env_int("FETCH_TIMEOUT_MS")
    if timeout_ms is not None:
        source.timeout_sec = timeout_ms / 1000
    attempts = _env_int("MAX_FETCH_ATTEMPTS")
    if attempts is not None:
        source.max_attempts = attempts
    interval_ms = _env_int("REFRESH_INTERVAL_MS")
    if interval_ms is not None:
        refresh.interval_sec = interval_ms / 1000

    if source.max_attempts < 1:
        raise ConfigError(f"max_attempts must be >= 1, got {source.max_attempts}")
    if source.timeout_sec <= 0:
        raise ConfigError(f"timeout must be positive, got {source.timeout_sec}")
    if not MIN_PANELS <= display.max_panels <= MAX_PANELS:
        raise ConfigError(
            f"max_panels must be between {MIN_PANELS} and {MAX_PANELS}, got {display.max_panels}"
        )
    if display.round not in ("round1", "round2"):
        raise ConfigError(f"Unknown round: {display.round}")

    if source.sheet_id:
        logger.info("Sheet source: %s", source.sheet_id)
    else:
        logger.info("No default sheet id configured; set GOOGLE_SHEET_ID in .env or pass --sheet-id")

    return AppConfig(
        source=source,
        refresh=refresh,
        display=display,
        output_dir=Path(raw.get("output_dir", "./output")),
    )

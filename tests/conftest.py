"""Shared pytest fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlparse

import pytest

from config.config_loader import AppConfig, DisplayConfig, RefreshConfig, SourceConfig
from panel_tracker.fetcher import SheetFetcher
from panel_tracker.transport.base import Transport, TransportError

ROUND1_CSV = """Sr. No.,Name,Email,Round 1 Panel,Status
1,Asha Rao,asha.rao@example.com,Panel A,Done
2,,ben_lee@example.com,Panel A,Ongoing
3,Chen Wu,chen.wu@example.com,Panel A,
4,Dev Patel,dev@example.com,Panel B,Done
"""

ROUND2_CSV = """Sr. No.,Name,email,Panelist Name - Room,Status
1,Eve Stone,eve@example.com,Dr. K - Room 4,On-Going
2,Farah Ali,,Dr. K - Room 4,Pending
"""

COMBINED_CSV = """Name,Email,Round 1 Panel,Round 2 Panel,Status
Gina,gina@example.com,Panel C,,Ongoing
Hugo,hugo@example.com,,Room 9,Pending
Ivy,ivy@example.com,Panel C,,Pending
Jon,jon@example.com,Panel D,Room 9,Done
Kim,kim@example.com,,,Pending
"""


def route_of(url: str) -> tuple[str, str]:
    """Return (sheet_name, route) for a direct or proxied export URL."""
    query = parse_qs(urlparse(url).query, keep_blank_values=True)
    if "url" in query:
        inner = parse_qs(urlparse(query["url"][0]).query, keep_blank_values=True)
        return inner["sheet"][0], "proxy"
    return query["sheet"][0], "direct"


class MockTransport(Transport):
    """Test double Transport keyed by sheet name.

    Each value is CSV text (both routes succeed), an Exception (both routes fail),
    or a dict {"direct": ..., "proxy": ...} for per-route behaviour. Unknown sheets fail.
    """

    def __init__(self, sheets: dict[str, object] | None = None) -> None:
        self.sheets = dict(sheets or {})
        self.calls: list[tuple[str, str]] = []
        self.closed = False
        # Shadow the class method with an AsyncMock at the instance level.
        self.get_text = AsyncMock(side_effect=self._respond)  # type: ignore[assignment]

    def name(self) -> str:
        return "mock"

    def close(self) -> None:
        self.closed = True

    async def _respond(self, url: str, timeout_sec: float) -> str:
        sheet, route = route_of(url)
        self.calls.append((sheet, route))
        outcome = self.sheets.get(sheet, TransportError(route, f"no such sheet: {sheet!r}"))
        if isinstance(outcome, dict):
            outcome = outcome.get(route, TransportError(route, "route down"))
        if isinstance(outcome, BaseException):
            raise outcome
        return str(outcome)

    async def get_text(self, url: str, timeout_sec: float) -> str:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return await self._respond(url, timeout_sec)


@pytest.fixture
def sample_source_config() -> SourceConfig:
    return SourceConfig(
        sheet_id="test-sheet-id",
        timeout_sec=1.0,
        max_attempts=2,
        backoff_base_sec=0.5,
    )


@pytest.fixture
def sample_app_config(tmp_path: Path, sample_source_config: SourceConfig) -> AppConfig:
    return AppConfig(
        source=sample_source_config,
        refresh=RefreshConfig(interval_sec=0.01),
        display=DisplayConfig(),
        output_dir=tmp_path / "output",
    )


@pytest.fixture
def sleep_mock() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest.fixture
def make_fetcher(sample_source_config: SourceConfig, sleep_mock: AsyncMock):
    """Build a SheetFetcher over a MockTransport with the given sheets."""

    def _make(sheets: dict[str, object] | None = None) -> tuple[SheetFetcher, MockTransport]:
        transport = MockTransport(sheets)
        return SheetFetcher(sample_source_config, transport, sleep=sleep_mock), transport

    return _make


@pytest.fixture
def all_sheets() -> dict[str, object]:
    return {"round1": ROUND1_CSV, "round2": ROUND2_CSV, "": COMBINED_CSV}

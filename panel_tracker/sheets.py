"""Composite retrieval of the round1 / round2 datasets with combined-sheet fallback."""

import asyncio
import logging
from collections.abc import Sequence

from panel_tracker.aggregator import ROUND1_PANEL_COLUMNS, ROUND2_PANEL_COLUMNS, ROUND2_ROOM_COLUMN, first_present
from panel_tracker.errors import FetchError
from panel_tracker.fetcher import SheetFetcher
from panel_tracker.models import RoundName, Row, SheetsResult

logger = logging.getLogger(__name__)

COMBINED_SHEET = ""

_ROUND_PANEL_COLUMNS: dict[RoundName, tuple[str, ...]] = {
    RoundName.ROUND1: ROUND1_PANEL_COLUMNS,
    RoundName.ROUND2: ROUND2_PANEL_COLUMNS,
}


def normalize_round2_row(row: Row) -> Row:
    """Guarantee the canonical round 2 columns, keeping every original column."""
    canonical = {
        "Sr. No.": row.get("Sr. No.") or "",
        "Name": row.get("Name") or "",
        "Email": row.get("Email") or row.get("email") or "",
        ROUND2_ROOM_COLUMN: row.get(ROUND2_ROOM_COLUMN) or "",
        "Status": row.get("Status") or "",
    }
    # Columns the row already has win, blank or not
    return {**canonical, **row}


def filter_round_rows(rows: Sequence[Row], round_name: RoundName) -> list[Row]:
    """Keep combined-sheet rows that carry a panel value for the given round."""
    columns = _ROUND_PANEL_COLUMNS[round_name]
    return [row for row in rows if first_present(row, columns) is not None]


class _CombinedSheet:
    """Fetches the combined sheet at most once, shared by both rounds."""

    def __init__(self, fetcher: SheetFetcher, sheet_id: str | None) -> None:
        self._fetcher = fetcher
        self._sheet_id = sheet_id
        self._task: asyncio.Task[list[Row]] | None = None

    async def rows(self) -> list[Row]:
        if self._task is None:
            self._task = asyncio.ensure_future(
                self._fetcher.fetch_sheet(COMBINED_SHEET, self._sheet_id)
            )
        return await asyncio.shield(self._task)


async def _fetch_round(
    fetcher: SheetFetcher,
    round_name: RoundName,
    combined: _CombinedSheet,
    sheet_id: str | None,
) -> list[Row]:
    try:
        rows = await fetcher.fetch_sheet(round_name.value, sheet_id)
    except FetchError as exc:
        logger.warning('Could not fetch "%s" sheet (%s), trying combined sheet', round_name.value, exc)
        rows = filter_round_rows(await combined.rows(), round_name)
        logger.info("%s: %d rows from combined sheet", round_name.value, len(rows))
        return rows

    if round_name is RoundName.ROUND2:
        rows = [normalize_round2_row(row) for row in rows]
    return rows


async def fetch_and_parse_sheets(fetcher: SheetFetcher, sheet_id: str | None = None) -> SheetsResult:
    """Fetch both rounds concurrently.

    Returns:
        SheetsResult with round1 and round2 rows. A round may be empty.

    Raises:
        FetchError: If a round's named sheet and the combined fallback both failed.
            The message names every failed round.
        ConfigError: If no sheet id can be resolved.
        ParseError: If a fetched sheet is not valid CSV.
    """
    combined = _CombinedSheet(fetcher, sheet_id)
    rounds = (RoundName.ROUND1, RoundName.ROUND2)
    results = await asyncio.gather(
        *(_fetch_round(fetcher, r, combined, sheet_id) for r in rounds),
        return_exceptions=True,
    )

    failures: dict[str, FetchError] = {}
    fetched: dict[RoundName, list[Row]] = {}
    for round_name, result in zip(rounds, results):
        if isinstance(result, FetchError):
            failures[round_name.value] = result
        elif isinstance(result, BaseException):
            raise result
        else:
            fetched[round_name] = result

    if failures:
        detail = "; ".join(f"{name}: {exc}" for name, exc in failures.items())
        raise FetchError(", ".join(failures), fetcher.max_attempts, detail)

    return SheetsResult(round1=fetched[RoundName.ROUND1], round2=fetched[RoundName.ROUND2])

"""Refresh orchestration and feed building on top of the snapshot cache."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from panel_tracker.aggregator import filter_and_group_data
from panel_tracker.cache import SnapshotCache
from panel_tracker.models import DEFAULT_STATUSES, FeedFilters, RoundName, SheetsResult

logger = logging.getLogger(__name__)

FetchSheets = Callable[[], Awaitable[SheetsResult]]


def parse_statuses(raw: str | None) -> list[str]:
    """Split a comma separated status list. Empty input selects the defaults."""
    if not raw or not raw.strip():
        return list(DEFAULT_STATUSES)
    return [s.strip() for s in raw.split(",") if s.strip()]


async def refresh_data(cache: SnapshotCache, fetch_sheets: FetchSheets) -> bool:
    """Fetch both rounds and swap them into the cache.

    Returns:
        True if a refresh ran, False if another refresh was already in flight.

    Raises:
        Whatever fetch_sheets raises; the previous snapshot is kept.
    """
    if cache.is_refreshing:
        logger.debug("Refresh already in progress, skipping")
        return False

    async with cache.refresh_lock:
        result = await fetch_sheets()
        cache.replace_snapshot(result.round1, result.round2, datetime.now(timezone.utc))

    logger.debug("Refreshed: %d round1 rows, %d round2 rows", len(result.round1), len(result.round2))
    return True


async def initialize_data(cache: SnapshotCache, fetch_sheets: FetchSheets) -> None:
    """Initial load. Errors propagate so the caller can abort startup."""
    logger.info("Fetching initial data from Google Sheets...")
    await refresh_data(cache, fetch_sheets)
    snapshot = cache.snapshot
    logger.info("Loaded %d Round 1 records", len(snapshot.round1))
    logger.info("Loaded %d Round 2 records", len(snapshot.round2))


async def run_refresh_loop(
    cache: SnapshotCache,
    fetch_sheets: FetchSheets,
    interval_sec: float,
    on_refresh: Callable[[SnapshotCache], None] | None = None,
    iterations: int | None = None,
) -> None:
    """Refresh every ``interval_sec`` seconds, for ``iterations`` cycles or forever.

    A failed refresh is logged and the previous snapshot stays in place.
    """
    done = 0
    while iterations is None or done < iterations:
        await asyncio.sleep(interval_sec)
        done += 1
        try:
            refreshed = await refresh_data(cache, fetch_sheets)
        except Exception as exc:
            logger.error("Background refresh failed: %s", exc)
            continue
        if refreshed and on_refresh:
            on_refresh(cache)


def build_feed(
    cache: SnapshotCache,
    round_name: RoundName | str = RoundName.ROUND1,
    statuses: Iterable[str] | None = None,
) -> dict[str, Any]:
    """Build the JSON-ready feed for one round from the current snapshot."""
    round_name = RoundName(round_name)
    snapshot = cache.snapshot
    rows = snapshot.round1 if round_name is RoundName.ROUND1 else snapshot.round2
    filters = FeedFilters(
        statuses=frozenset(statuses if statuses is not None else DEFAULT_STATUSES),
        round=round_name,
    )
    panels = filter_and_group_data(rows, filters)
    return {
        "success": True,
        "round": round_name.value,
        "data": [panel.to_dict() for panel in panels],
        "lastUpdated": snapshot.last_updated.isoformat() if snapshot.last_updated else None,
    }

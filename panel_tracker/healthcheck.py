"""Source health checks: fetch each sheet once before starting the tracker."""

import asyncio
import logging

from panel_tracker.fetcher import SheetFetcher

logger = logging.getLogger(__name__)

_TIMEOUT_SEC = 30.0


async def _check_one(fetcher: SheetFetcher, sheet_name: str, sheet_id: str | None) -> tuple[str, bool, str]:
    """Fetch a single sheet. Returns (sheet_name, ok, detail)."""
    try:
        rows = await asyncio.wait_for(
            fetcher.fetch_sheet(sheet_name, sheet_id),
            timeout=_TIMEOUT_SEC,
        )
        return sheet_name, True, f"{len(rows)} rows"
    except Exception as exc:
        return sheet_name, False, str(exc)


async def run_source_checks(
    fetcher: SheetFetcher,
    sheet_names: list[str],
    sheet_id: str | None = None,
) -> dict[str, tuple[bool, str]]:
    """Fetch all sheets in parallel.

    Returns:
        Dict mapping sheet name -> (ok, detail).
        detail is the row count when ok, otherwise the error message.
    """
    results = await asyncio.gather(*(_check_one(fetcher, n, sheet_id) for n in sheet_names))
    for name, ok, detail in results:
        logger.debug("Check %r: ok=%s (%s)", name, ok, detail)
    return {name: (ok, detail) for name, ok, detail in results}

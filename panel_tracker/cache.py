"""In-memory snapshot of the latest fetch, replaced wholesale on every refresh."""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime

from panel_tracker.models import RoundName, Row, Snapshot

logger = logging.getLogger(__name__)


class SnapshotCache:
    """Holds the current round1/round2 rows and the refresh guard.

    Readers get whichever Snapshot was current when they asked; a refresh swaps
    in a new frozen Snapshot with one assignment.
    """

    def __init__(self) -> None:
        self._snapshot = Snapshot()
        self._refresh_lock = asyncio.Lock()

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def last_updated(self) -> datetime | None:
        return self._snapshot.last_updated

    @property
    def refresh_lock(self) -> asyncio.Lock:
        return self._refresh_lock

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_lock.locked()

    def get_snapshot(self, round_name: RoundName | str) -> tuple[Row, ...]:
        snapshot = self._snapshot
        if RoundName(round_name) is RoundName.ROUND1:
            return snapshot.round1
        return snapshot.round2

    def replace_snapshot(
        self,
        round1: Sequence[Row],
        round2: Sequence[Row],
        timestamp: datetime,
    ) -> None:
        self._snapshot = Snapshot(round1=tuple(round1), round2=tuple(round2), last_updated=timestamp)
        logger.debug("Snapshot replaced: %d round1 rows, %d round2 rows", len(round1), len(round2))

    def stats(self) -> dict[str, object]:
        snapshot = self._snapshot
        return {
            "round1Count": len(snapshot.round1),
            "round2Count": len(snapshot.round2),
            "lastUpdated": snapshot.last_updated.isoformat() if snapshot.last_updated else None,
        }

"""Pure dataclasses for the panel tracker pipeline. No network, no I/O."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

# One spreadsheet line: column name -> cell text. Column set varies by round.
Row = Mapping[str, str]


class RoundName(str, Enum):
    ROUND1 = "round1"
    ROUND2 = "round2"


DEFAULT_STATUSES: tuple[str, ...] = ("ongoing", "beready")


@dataclass(frozen=True)
class FeedFilters:
    statuses: frozenset[str]
    round: RoundName = RoundName.ROUND1


@dataclass
class DisplayRow:
    fields: Row                # original row, never mutated
    display_status: str        # "Be Ready" for the inserted row, else raw Status
    show_as_be_ready: bool
    name: str
    normalized_status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.fields,
            "displayStatus": self.display_status,
            "showAsBeReady": self.show_as_be_ready,
            "name": self.name,
            "normalizedStatus": self.normalized_status,
        }


@dataclass
class PanelResult:
    panel: str
    items: list[DisplayRow] = field(default_factory=list)
    ongoing_count: int = 0
    other_count: int = 0
    all_over: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "panel": self.panel,
            "items": [item.to_dict() for item in self.items],
            "ongoingCount": self.ongoing_count,
            "otherCount": self.other_count,
            "allOver": self.all_over,
        }


@dataclass
class SheetsResult:
    round1: list[Row] = field(default_factory=list)
    round2: list[Row] = field(default_factory=list)


@dataclass(frozen=True)
class Snapshot:
    round1: tuple[Row, ...] = ()
    round2: tuple[Row, ...] = ()
    last_updated: datetime | None = None

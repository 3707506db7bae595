"""Panel aggregation: group rows by panel, order ongoing / be-ready / remaining rows.

Pure functions only. Nothing here performs I/O or mutates the input rows.
"""

import re
from collections.abc import Iterable, Sequence

from panel_tracker.models import DisplayRow, FeedFilters, PanelResult, Row

ONGOING = "ongoing"
BE_READY = "beready"
PENDING = "pending"
BE_READY_LABEL = "Be Ready"
UNKNOWN_NAME = "Unknown"

ROUND1_PANEL_COLUMNS: tuple[str, ...] = ("Round 1 Panel", "Round1 Panel", "Round1Panel")
ROUND2_PANEL_COLUMNS: tuple[str, ...] = ("Round 2 Panel", "Round2 Panel", "Round2Panel")
ROUND2_ROOM_COLUMN = "Panelist Name - Room"

# Priority order for the panel identity of a row
PANEL_COLUMNS: tuple[str, ...] = (
    *ROUND1_PANEL_COLUMNS,
    *ROUND2_PANEL_COLUMNS,
    ROUND2_ROOM_COLUMN,
    "Panel",
    "panel",
)

_STRIP_RE = re.compile(r"[\s-]+")
_NAME_SEPARATORS_RE = re.compile(r"[._-]+")


def normalize_status(status: str | None) -> str:
    """Lower-case and drop whitespace and hyphens. Empty means "pending".

    >>> normalize_status("On-Going ")
    'ongoing'
    """
    normalized = _STRIP_RE.sub("", str(status or "").lower())
    return normalized or PENDING


def first_present(row: Row, keys: Iterable[str]) -> str | None:
    """Trim the first non-empty value among ``keys``. None if it trims to nothing.

    A whitespace-only value still claims its slot and hides lower-priority keys.
    """
    for key in keys:
        value = row.get(key)
        if value:
            return str(value).strip() or None
    return None


def get_panel_key(row: Row) -> str | None:
    return first_present(row, PANEL_COLUMNS)


def get_name_from_email(email: str | None) -> str:
    """Derive a display name from the local part of an email address.

    "jane.doe@x.com" -> "Jane Doe". Returns "Unknown" when nothing usable remains.
    """
    if not email or not isinstance(email, str):
        return UNKNOWN_NAME
    local = email.split("@")[0]
    words = [word.capitalize() for word in _NAME_SEPARATORS_RE.split(local.strip()) if word.strip()]
    return " ".join(words) or UNKNOWN_NAME


def display_name(row: Row) -> str:
    name = (row.get("Name") or "").strip()
    return name or get_name_from_email(row.get("Email"))


def group_by_panel(rows: Iterable[Row]) -> dict[str, list[Row]]:
    """Partition rows by trimmed panel identity, keeping input order inside each group.

    Rows without a panel identity are dropped.
    """
    groups: dict[str, list[Row]] = {}
    for row in rows:
        panel = get_panel_key(row)
        if panel is None:
            continue
        groups.setdefault(panel, []).append(row)
    return groups


def _to_display_row(row: Row, be_ready: bool) -> DisplayRow:
    raw_status = row.get("Status") or ""
    return DisplayRow(
        fields=row,
        display_status=BE_READY_LABEL if be_ready else raw_status,
        show_as_be_ready=be_ready,
        name=display_name(row),
        normalized_status=normalize_status(raw_status),
    )


def build_panel(panel: str, panel_rows: Sequence[Row], active: frozenset[str]) -> PanelResult | None:
    """Build the display result for one panel group, or None if it should be hidden."""
    statuses = [normalize_status(row.get("Status")) for row in panel_rows]
    ongoing_idxs = [i for i, status in enumerate(statuses) if status == ONGOING]
    has_ongoing = bool(ongoing_idxs)

    be_ready_row: Row | None = None
    if has_ongoing and ongoing_idxs[-1] + 1 < len(panel_rows):
        be_ready_row = panel_rows[ongoing_idxs[-1] + 1]

    all_over = (has_ongoing and be_ready_row is None) or (len(panel_rows) > 0 and not has_ongoing)

    display: list[Row] = []
    if ONGOING in active:
        display.extend(panel_rows[i] for i in ongoing_idxs)

    # Insert after the ongoing rows that made it into the display, not the raw group
    include_be_ready = BE_READY in active and be_ready_row is not None
    if include_be_ready:
        ongoing_in_display = sum(1 for row in display if normalize_status(row.get("Status")) == ONGOING)
        display.insert(ongoing_in_display, be_ready_row)

    for row, status in zip(panel_rows, statuses):
        if status == ONGOING:
            continue
        # The next candidate never shows as a plain row, even when "beready" is filtered out
        if row is be_ready_row:
            continue
        if status in active:
            display.append(row)

    if not display and not all_over:
        return None

    items = [_to_display_row(row, include_be_ready and row is be_ready_row) for row in display]
    ongoing_count = sum(1 for item in items if item.normalized_status == ONGOING)
    return PanelResult(
        panel=panel,
        items=items,
        ongoing_count=ongoing_count,
        other_count=len(items) - ongoing_count,
        all_over=all_over,
    )


def filter_and_group_data(rows: Iterable[Row], filters: FeedFilters) -> list[PanelResult]:
    """Group rows by panel and build the ordered display feed.

    Args:
        rows: One round's dataset, in sheet order. Read only.
        filters: Active statuses (normalized here) and the round being shown.

    Returns:
        One PanelResult per visible panel, sorted by panel name.
    """
    active = frozenset(normalize_status(s) for s in filters.statuses)
    groups = group_by_panel(rows)

    results: list[PanelResult] = []
    for panel in sorted(groups):
        result = build_panel(panel, groups[panel], active)
        if result is not None:
            results.append(result)
    return results

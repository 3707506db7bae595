"""Rich console output and JSON file save for panel feeds."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

ALL_OVER_MESSAGE = "All interviews completed"


def _panel_body(panel: dict[str, Any]) -> Text:
    """One line per candidate: name and display status."""
    body = Text()
    if not panel["items"]:
        body.append(ALL_OVER_MESSAGE if panel["allOver"] else "No candidates", style="dim")
        return body

    for i, item in enumerate(panel["items"]):
        if i:
            body.append("\n")
        if item["showAsBeReady"]:
            style = "bold yellow"
        elif item["normalizedStatus"] == "ongoing":
            style = "bold green"
        else:
            style = ""
        body.append(f"{item['name']:<28}", style=style)
        body.append(item["displayStatus"] or "-", style=style or "dim")
    return body


def print_feed(feed: dict[str, Any], max_panels: int | None = None, con: Console | None = None) -> None:
    """Print one panel box per panel result, limited to ``max_panels``."""
    con = con or console
    updated = feed.get("lastUpdated") or "never"
    con.print(Rule(f"[bold cyan]{feed['round']}[/bold cyan] [dim](updated {updated})[/dim]"))

    panels = feed["data"] if max_panels is None else feed["data"][:max_panels]
    if not panels:
        con.print(Text("No active panels", style="dim"))
    for panel in panels:
        con.print(
            Panel(
                _panel_body(panel),
                title=Text(panel["panel"], style="bold"),
                subtitle=f"{panel['ongoingCount']} ongoing, {panel['otherCount']} other",
                border_style="green" if panel["ongoingCount"] else "dim",
            )
        )
    hidden = len(feed["data"]) - len(panels)
    if hidden > 0:
        con.print(Text(f"+{hidden} more panel(s) not shown", style="dim"))


def print_stats(stats: dict[str, Any], con: Console | None = None) -> None:
    con = con or console
    con.print(
        Text(
            f"Round 1: {stats['round1Count']} rows | "
            f"Round 2: {stats['round2Count']} rows | "
            f"Updated: {stats['lastUpdated'] or 'never'}",
            style="dim",
        )
    )


def save_feed(feed: dict[str, Any], output_dir: Path) -> Path:
    """Save the feed as a timestamped JSON file.

    Args:
        feed: Feed dict as built by build_feed.
        output_dir: Directory to save the file in. Created if missing.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = output_dir / f"{timestamp}_{feed['round']}.json"
    filepath.write_text(json.dumps(feed, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Feed saved to: %s", filepath)
    return filepath

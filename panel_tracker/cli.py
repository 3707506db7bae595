"""Click CLI: loads config, refreshes the sheet snapshot, renders the panel feed."""

import asyncio
import functools
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import MAX_PANELS, MIN_PANELS, AppConfig, load_config
from panel_tracker.cache import SnapshotCache
from panel_tracker.errors import ConfigError, PanelTrackerError
from panel_tracker.fetcher import SheetFetcher
from panel_tracker.healthcheck import run_source_checks
from panel_tracker.output import print_feed, print_stats, save_feed
from panel_tracker.sheets import COMBINED_SHEET, fetch_and_parse_sheets
from panel_tracker.tracker import build_feed, initialize_data, parse_statuses, run_refresh_loop
from panel_tracker.transport.requests_transport import RequestsTransport

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

CHECK_SHEETS = ["round1", "round2", COMBINED_SHEET]


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
    )


def _build_fetcher(config: AppConfig) -> SheetFetcher:
    return SheetFetcher(config.source, RequestsTransport())


def _check_sources(fetcher: SheetFetcher, sheet_id: str | None) -> bool:
    """Fetch every sheet once and print the results. Returns True if any sheet is reachable."""
    console.print("\n[bold]Checking sheets...[/bold]")
    results: dict[str, tuple[bool, str]] = asyncio.run(
        run_source_checks(fetcher, CHECK_SHEETS, sheet_id)
    )

    for name in CHECK_SHEETS:
        ok, detail = results[name]
        label = name or "(combined)"
        if ok:
            console.print(f"  [green]OK  [/green] {label}: {detail}")
        else:
            short_err = detail.splitlines()[0][:120] if detail else "unknown error"
            console.print(f"  [red]FAIL[/red] {label}: {short_err}")

    return any(ok for ok, _ in results.values())


def _render(
    cache: SnapshotCache,
    round_name: str,
    statuses: list[str],
    max_panels: int,
    as_json: bool,
    output_dir: Path | None,
) -> dict[str, Any]:
    feed = build_feed(cache, round_name, statuses)
    if output_dir is not None:
        save_feed(feed, output_dir)
    if as_json:
        click.echo(json.dumps(feed, indent=2, ensure_ascii=False))
    else:
        print_stats(cache.stats(), con=console)
        print_feed(feed, max_panels=max_panels, con=console)
    return feed


async def _run(
    fetcher: SheetFetcher,
    sheet_id: str | None,
    round_name: str,
    statuses: list[str],
    max_panels: int,
    as_json: bool,
    output_dir: Path | None,
    watch: bool,
    interval_sec: float,
    iterations: int | None,
) -> None:
    """Initial load, render, then optionally keep refreshing."""
    cache = SnapshotCache()
    fetch = functools.partial(fetch_and_parse_sheets, fetcher, sheet_id)

    try:
        await initialize_data(cache, fetch)
    except PanelTrackerError as exc:
        console.print(f"[bold red]Failed to initialize data:[/bold red] {exc}")
        sys.exit(1)

    render = functools.partial(
        _render,
        round_name=round_name,
        statuses=statuses,
        max_panels=max_panels,
        as_json=as_json,
        output_dir=output_dir,
    )
    render(cache)

    if watch:
        logger.info("Refreshing every %.1fs", interval_sec)
        await run_refresh_loop(cache, fetch, interval_sec, on_refresh=render, iterations=iterations)


@click.command()
@click.option("--round", "round_name", default=None, type=click.Choice(["round1", "round2"]),
              help="Which round to show (default: from config)")
@click.option("--statuses", default=None,
              help="Comma-separated statuses to show, e.g. ongoing,beready,pending (default: from config)")
@click.option("--sheet-id", default=None, help="Spreadsheet id (default: GOOGLE_SHEET_ID / config)")
@click.option("--max-panels", default=None, type=click.IntRange(MIN_PANELS, MAX_PANELS),
              help="Number of panels to display (default: from config)")
@click.option("--json", "as_json", is_flag=True, help="Print the feed as JSON instead of panels")
@click.option("--save", is_flag=True, help="Save each feed as JSON into the output directory")
@click.option("--output", "output_path", default=None, help="Output directory for --save (default: from config)")
@click.option("--watch", is_flag=True, help="Keep refreshing and re-rendering")
@click.option("--interval", default=None, type=float, help="Refresh interval in seconds (default: from config)")
@click.option("--iterations", default=None, type=click.IntRange(min=1),
              help="Stop --watch after this many refreshes")
@click.option("--check", "check_only", is_flag=True, help="Only check that the sheets are reachable")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def main(
    round_name: str | None,
    statuses: str | None,
    sheet_id: str | None,
    max_panels: int | None,
    as_json: bool,
    save: bool,
    output_path: str | None,
    watch: bool,
    interval: float | None,
    iterations: int | None,
    check_only: bool,
    verbose: bool,
) -> None:
    """Panel Tracker -- live interview panel status from Google Sheets.

    \b
    Examples:
      panel-tracker --sheet-id 1AbC... --round round1
      panel-tracker --statuses ongoing,beready,pending --max-panels 5
      panel-tracker --watch --interval 4
      panel-tracker --json --save --output ./output
      panel-tracker --check
    """
    # Reconfigure stdout/stderr to UTF-8 on Windows so candidate names with
    # non-ASCII characters don't crash the ANSI render path.
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
    except (FileNotFoundError, ConfigError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    effective_round = round_name or config.display.round
    effective_statuses = parse_statuses(statuses) if statuses else list(config.display.statuses)
    effective_max_panels = max_panels if max_panels is not None else config.display.max_panels
    effective_interval = interval if interval is not None else config.refresh.interval_sec
    output_dir: Path | None = None
    if save:
        output_dir = Path(output_path) if output_path else config.output_dir

    fetcher = _build_fetcher(config)
    try:
        try:
            fetcher.resolve_sheet_id(sheet_id)
        except ConfigError as exc:
            console.print(f"[bold red]Config error:[/bold red] {exc}")
            sys.exit(1)

        if check_only:
            if not _check_sources(fetcher, sheet_id):
                console.print("\n[bold red]Error:[/bold red] No sheet could be fetched.")
                sys.exit(1)
            return

        asyncio.run(
            _run(
                fetcher=fetcher,
                sheet_id=sheet_id,
                round_name=effective_round,
                statuses=effective_statuses,
                max_panels=effective_max_panels,
                as_json=as_json,
                output_dir=output_dir,
                watch=watch,
                interval_sec=effective_interval,
                iterations=iterations,
            )
        )
    finally:
        fetcher.close()


if __name__ == "__main__":
    main()

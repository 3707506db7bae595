"""Sheet fetcher: CSV export URLs, direct/proxy retrieval with retries, CSV parsing."""

import asyncio
import csv
import io
import logging
from collections.abc import Awaitable, Callable
from urllib.parse import quote

from config.config_loader import SourceConfig
from panel_tracker.errors import ConfigError, FetchError, ParseError
from panel_tracker.models import Row
from panel_tracker.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)

_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:csv&sheet={sheet}"


def build_export_url(sheet_id: str, sheet_name: str) -> str:
    """Return the CSV export URL for one sheet. An empty name selects the first sheet."""
    return _EXPORT_URL.format(sheet_id=sheet_id, sheet=quote(sheet_name, safe=""))


def build_proxy_url(template: str, url: str) -> str:
    return template.format(url=quote(url, safe=""))


def parse_csv(text: str) -> list[Row]:
    """Parse CSV text into rows keyed by the header line.

    Fields are trimmed, blank lines skipped, short records padded with "",
    fields past the header dropped.

    Raises:
        ParseError: If the CSV is malformed (e.g. an unterminated quote).
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")), strict=True)
    try:
        records = [record for record in reader if any(value.strip() for value in record)]
    except csv.Error as exc:
        raise ParseError(f"Malformed CSV at line {reader.line_num}: {exc}") from exc

    if not records:
        return []

    header = [column.strip() for column in records[0]]
    rows: list[Row] = []
    for record in records[1:]:
        values = [value.strip() for value in record]
        values += [""] * (len(header) - len(values))
        rows.append(dict(zip(header, values)))
    return rows


class SheetFetcher:
    """Fetches named sheets of one spreadsheet document as parsed rows."""

    def __init__(
        self,
        config: SourceConfig,
        transport: Transport,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config
        self._transport = transport
        self._sleep = sleep

    def close(self) -> None:
        self._transport.close()

    @property
    def max_attempts(self) -> int:
        return self._config.max_attempts

    def resolve_sheet_id(self, sheet_id: str | None = None) -> str:
        resolved = (sheet_id or "").strip() or (self._config.sheet_id or "").strip()
        if not resolved:
            raise ConfigError("No sheet id given and GOOGLE_SHEET_ID is not set")
        return resolved

    async def _get(self, url: str, route: str) -> str:
        timeout = self._config.timeout_sec
        try:
            return await asyncio.wait_for(
                self._transport.get_text(url, timeout),
                timeout=timeout,
            )
        except TimeoutError as exc:
            raise TransportError(route, f"Request timed out after {timeout}s") from exc

    async def _get_with_fallback(self, url: str) -> str:
        """Try the direct export URL, then the same URL through the proxy."""
        try:
            return await self._get(url, "direct")
        except TransportError as exc:
            logger.debug("Direct fetch failed (%s), trying proxy", exc)
        return await self._get(build_proxy_url(self._config.proxy_url, url), "proxy")

    async def fetch_sheet(self, sheet_name: str, sheet_id: str | None = None) -> list[Row]:
        """Fetch and parse one sheet.

        Args:
            sheet_name: Sheet (tab) name; "" selects the document's first sheet.
            sheet_id: Spreadsheet id; falls back to the configured default.

        Returns:
            Parsed rows in sheet order.

        Raises:
            ConfigError: If no sheet id can be resolved.
            FetchError: If every attempt failed on both routes.
            ParseError: If the body is not valid CSV. Not retried.
        """
        url = build_export_url(self.resolve_sheet_id(sheet_id), sheet_name)
        attempts = self._config.max_attempts
        last_error: TransportError | None = None

        for attempt in range(1, attempts + 1):
            try:
                text = await self._get_with_fallback(url)
            except TransportError as exc:
                last_error = exc
                if attempt < attempts:
                    delay = attempt * self._config.backoff_base_sec
                    logger.warning(
                        'Sheet "%s" attempt %d/%d failed (%s), retrying in %.1fs',
                        sheet_name, attempt, attempts, exc, delay,
                    )
                    await self._sleep(delay)
                continue

            rows = parse_csv(text)
            logger.debug('Sheet "%s": %d rows on attempt %d', sheet_name, len(rows), attempt)
            return rows

        raise FetchError(sheet_name, attempts, last_error)

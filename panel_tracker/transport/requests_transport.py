"""Transport backed by requests, run in a worker thread."""

import asyncio
import logging

import requests

from panel_tracker.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)

_HEADERS = {
    "Accept": "text/csv",
    "User-Agent": "panel-tracker/0.1",
}


class RequestsTransport(Transport):
    """Blocking requests session wrapped for asyncio callers."""

    def __init__(self, session: requests.Session | None = None) -> None:
        self._session = session or requests.Session()

    def name(self) -> str:
        return "requests"

    def _get(self, url: str, timeout_sec: float) -> str:
        response = self._session.get(url, headers=_HEADERS, timeout=timeout_sec)
        response.raise_for_status()
        # Sheets exports are UTF-8 and may start with a BOM
        return response.content.decode("utf-8-sig", errors="replace")

    async def get_text(self, url: str, timeout_sec: float) -> str:
        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(self._get, url, timeout_sec),
                timeout=timeout_sec,
            )
        except (TimeoutError, requests.Timeout) as exc:
            raise TransportError(self.name(), f"Request timed out after {timeout_sec}s") from exc
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else "?"
            raise TransportError(self.name(), f"HTTP {status} for {url}") from exc
        except requests.RequestException as exc:
            raise TransportError(self.name(), f"Request failed: {exc}") from exc

        logger.debug("GET %s: %d chars", url, len(text))
        return text

    def close(self) -> None:
        self._session.close()

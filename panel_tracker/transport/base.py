"""Abstract base for HTTP transports that return response bodies as text."""

from abc import ABC, abstractmethod


class TransportError(Exception):
    """Raised when a single HTTP request fails."""

    def __init__(self, route: str, message: str) -> None:
        self.route = route
        super().__init__(f"[{route}] {message}")


class Transport(ABC):
    """Abstract base for all transports used by the sheet fetcher."""

    @abstractmethod
    def name(self) -> str:
        """Return the short transport name (e.g. 'requests')."""
        ...

    @abstractmethod
    async def get_text(self, url: str, timeout_sec: float) -> str:
        """Fetch the given URL and return the decoded body.

        Args:
            url: Fully built request URL.
            timeout_sec: Upper bound for the whole request.

        Returns:
            Response body decoded as text.

        Raises:
            TransportError: On connection failure, timeout, or non-2xx status.
        """
        ...

    def close(self) -> None:
        """Release any pooled connections. No-op by default."""

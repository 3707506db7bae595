"""Exception hierarchy for the panel tracker pipeline."""


class PanelTrackerError(Exception):
    """Base class for all panel tracker errors."""


class ConfigError(PanelTrackerError):
    """Raised when required configuration (e.g. the sheet id) is missing or invalid."""


class FetchError(PanelTrackerError):
    """Raised when a sheet cannot be retrieved after all attempts."""

    def __init__(self, sheet_name: str, attempts: int, last_error: BaseException | str | None) -> None:
        self.sheet_name = sheet_name
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f'Failed to fetch sheet "{sheet_name}" after {attempts} attempt(s): {last_error}'
        )


class ParseError(PanelTrackerError):
    """Raised when a CSV body cannot be parsed."""

"""Exception types shared across the search sync service."""


class SearchEngineError(Exception):
    """Raised when the search engine returns a non-2xx response."""

    def __init__(self, status_code: int, detail: str, url: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        self.url = url
        super().__init__(f"Search engine {status_code}: {detail} ({url})")


class SearchEngineUnavailableError(Exception):
    """Raised when the search engine cannot be reached at all."""

    def __init__(self, host: str, reason: str) -> None:
        self.host = host
        self.reason = reason
        super().__init__(f"Search engine unreachable at {host}: {reason}")


class IndexConfigurationError(Exception):
    """Raised when index settings could not be applied.

    Attributes:
        failed_groups: Names of the setting groups that were rejected.
    """

    def __init__(self, message: str, failed_groups: list[str] | None = None) -> None:
        self.failed_groups = failed_groups or []
        super().__init__(message)


class InvalidChangeEventError(Exception):
    """Raised when a change notification payload cannot be processed."""


class RecordSourceError(Exception):
    """Raised when the record source query fails."""

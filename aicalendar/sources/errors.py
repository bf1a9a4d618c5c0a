"""Source fetcher errors."""

from __future__ import annotations


class SourceAPIError(RuntimeError):
    """Raised when a source platform returns an error response."""

    def __init__(
        self, message: str, *, source: str, status_code: int | None = None
    ) -> None:
        """Initialise with a message, the source name and optional HTTP status."""
        self.source = source
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, source: str, status_code: int) -> SourceAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(
            f"{source} returned HTTP {status_code}",
            source=source,
            status_code=status_code,
        )

    @classmethod
    def graphql_errors(cls, source: str, errors: object) -> SourceAPIError:
        """Return an error for GraphQL `errors` payloads."""
        return cls(f"{source} GraphQL errors: {errors}", source=source)

    @classmethod
    def unknown_group(cls, source: str, urlname: str) -> SourceAPIError:
        """Return an error when a group lookup yields no connection."""
        return cls(f"{source} group not found: {urlname}", source=source)

    @classmethod
    def all_failed(
        cls, source: str, count: int, last: BaseException
    ) -> SourceAPIError:
        """Return an error when every configured feed or group failed."""
        status = last.status_code if isinstance(last, SourceAPIError) else None
        return cls(
            f"{source}: all {count} configured feeds failed, last error: {last}",
            source=source,
            status_code=status,
        )


class SourceResponseShapeError(RuntimeError):
    """Raised when a source response is missing expected fields."""

    def __init__(self, message: str, *, source: str) -> None:
        """Record the source name alongside the message."""
        self.source = source
        super().__init__(message)

    @classmethod
    def missing(cls, source: str, field: str) -> SourceResponseShapeError:
        """Return an error for a missing response field."""
        return cls(
            f"{source} response missing expected field: {field}", source=source
        )


class SourceConfigError(RuntimeError):
    """Raised when fetcher configuration is invalid."""

    @classmethod
    def empty_sources(cls, source: str) -> SourceConfigError:
        """Return an error when a fetcher is configured with nothing to fetch."""
        return cls(f"{source} requires at least one configured source")

    @classmethod
    def invalid_max_pages(cls, value: int) -> SourceConfigError:
        """Return an error for a non-positive page cap."""
        return cls(f"max_pages must be positive, got {value}")

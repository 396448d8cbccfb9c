"""Exception types shared by the TeamCity adapter and the collectors."""


class TeamCityError(RuntimeError):
    """Base class for errors raised while talking to TeamCity."""


class TeamCityRequestError(TeamCityError):
    """Raised when a TeamCity request fails after retries or returns an error status."""

    def __init__(self, message: str, *, url: str | None = None, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class PaginationUnsupportedError(TeamCityError):
    """
    Raised when TeamCity reports a further page of results.

    Only single-page responses are supported. This error is fatal: it is never
    retried and collectors do not swallow it.
    """

    def __init__(self, resource: str, next_href: str):
        super().__init__(
            f"multipage requests are not supported ({resource}, next: {next_href})"
        )
        self.resource = resource
        self.next_href = next_href


class TimestampError(ValueError):
    """Raised when a TeamCity timestamp cannot be parsed."""


class ConfigError(ValueError):
    """Raised when the exporter configuration is invalid."""

"""Error taxonomy translated to HTTP responses at the handler boundary."""


class PoemGraphError(Exception):
    """Base class for errors that map to an HTTP status."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(PoemGraphError):
    """Request parameter that cannot be coerced (e.g. a non-numeric node id)."""

    status_code = 400
    default_message = "Invalid input"


class NotFound(PoemGraphError):
    """Requested node does not exist."""

    status_code = 404
    default_message = "Not found"


class UpstreamFailure(PoemGraphError):
    """Neo4j is unreachable or a query failed."""

    status_code = 500
    default_message = "Failed to fetch data"


class PartialParseFailure(PoemGraphError):
    """A single fallback file could not be read or parsed."""

    default_message = "Failed to parse fallback file"

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")

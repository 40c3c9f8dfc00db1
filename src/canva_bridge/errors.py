"""Error taxonomy shared by the registry, the MCP client and the HTTP layer.

Each error carries the HTTP status it is reported with; the API layer turns
them into JSON bodies in one place.
"""

from typing import Any


class BridgeError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BridgeError):
    """Required input is missing or malformed."""

    status_code = 400


class InsufficientCreditsError(BridgeError):
    """No credits left to start another job."""

    status_code = 403


class NotFoundError(BridgeError):
    """Unknown job id, or the job is not in a state that allows the operation."""

    status_code = 404


class UpstreamError(BridgeError):
    """The MCP server could not be reached or answered with an error."""

    status_code = 502

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.details = details

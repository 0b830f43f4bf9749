from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    NETWORK_ERROR = "NETWORK_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    VERSION_NOT_FOUND = "VERSION_NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"


class WatcherError(Exception):
    """Base class for every expected failure raised by the watcher.

    The tool layer catches it and serialises it into the MCP error response.
    Inside the refresh loop it is logged and the page or cycle is skipped.
    """

    code: ErrorCode = ErrorCode.NETWORK_ERROR
    default_suggestion: str = ""
    default_recoverable: bool = False

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        recoverable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.suggestion = self.default_suggestion if suggestion is None else suggestion
        self.recoverable = self.default_recoverable if recoverable is None else recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class NetworkError(WatcherError):
    """Transport failure or a non-200 response from the listing site."""

    code = ErrorCode.NETWORK_ERROR
    default_suggestion = "The server listing site may be temporarily unavailable."
    default_recoverable = True


class ParseError(WatcherError):
    """A listing page did not match the expected entry layout."""

    code = ErrorCode.PARSE_ERROR
    default_suggestion = "The listing site may have changed its page layout or language."


class VersionNotFoundError(WatcherError):
    code = ErrorCode.VERSION_NOT_FOUND
    default_suggestion = "Check the server address; it must appear on the listing site."


class InvalidInputError(WatcherError):
    code = ErrorCode.INVALID_INPUT
    default_suggestion = "Provide a non-empty server address (max 255 chars)."

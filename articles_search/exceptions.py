"""Application exception hierarchy.

All custom exceptions inherit from ArticlesSearchError.
Each exception has an error code for structured error handling.
"""

from collections.abc import Iterable
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "AS-1000"
    CONFIGURATION_ERROR = "AS-1001"
    VALIDATION_ERROR = "AS-1002"

    # Query errors (2xxx)
    UNKNOWN_PARAMETER = "AS-2000"
    EMPTY_QUERY = "AS-2001"
    QUERY_REJECTED = "AS-2002"

    # Record errors (3xxx)
    NOT_FOUND = "AS-3000"
    CONFLICT = "AS-3001"

    # Store errors (4xxx)
    TRANSPORT_ERROR = "AS-4000"
    STORE_TIMEOUT = "AS-4001"
    MALFORMED_REPLY = "AS-4002"
    STORE_REJECTED = "AS-4003"


class ArticlesSearchError(Exception):
    """Base exception for all article service errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(ArticlesSearchError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(ArticlesSearchError):
    """Input validation error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class UnknownParameterError(ArticlesSearchError):
    """A search parameter does not name a searchable field."""

    def __init__(self, parameter: str, accepted: Iterable[str]) -> None:
        self.parameter = parameter
        self.accepted = list(accepted)
        super().__init__(
            f"{parameter} query provided is not one of the following "
            f"parameters: {self.accepted}",
            ErrorCode.UNKNOWN_PARAMETER,
            {"parameter": parameter, "accepted": self.accepted},
        )


class EmptyQueryError(ArticlesSearchError):
    """A search was requested without any filter."""

    def __init__(self, accepted: Iterable[str]) -> None:
        self.accepted = list(accepted)
        super().__init__(
            "You must provide at least one of the following parameters: "
            f"{self.accepted}",
            ErrorCode.EMPTY_QUERY,
            {"accepted": self.accepted},
        )


class NotFoundError(ArticlesSearchError):
    """No document exists at the requested key."""

    def __init__(self, key: str, details: dict[str, Any] | None = None) -> None:
        self.key = key
        super().__init__(
            f"No document found at key {key}",
            ErrorCode.NOT_FOUND,
            {"key": key, **(details or {})},
        )


class ConflictError(ArticlesSearchError):
    """A document already exists at the key being created."""

    def __init__(self, key: str, details: dict[str, Any] | None = None) -> None:
        self.key = key
        super().__init__(
            f"A document already exists at key {key}",
            ErrorCode.CONFLICT,
            {"key": key, **(details or {})},
        )


class MalformedReplyError(ArticlesSearchError):
    """The store replied with a shape the decoder cannot accept.

    Attributes:
        fragment: The part of the reply that failed to decode.
    """

    def __init__(self, message: str, fragment: Any = None) -> None:
        self.fragment = fragment
        super().__init__(
            message,
            ErrorCode.MALFORMED_REPLY,
            {"fragment": repr(fragment)[:500]},
        )


class TransportError(ArticlesSearchError):
    """Connection, timeout or protocol failure talking to the store."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TRANSPORT_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class QueryRejectedError(ArticlesSearchError):
    """The store refused to parse a compiled search query.

    Raised for syntax errors caused by filter values, such as unbalanced
    parentheses, as opposed to the store being unavailable.
    """

    def __init__(self, query: str, reason: str) -> None:
        self.query = query
        super().__init__(
            f"Search query was rejected by the store: {reason}",
            ErrorCode.QUERY_REJECTED,
            {"query": query, "reason": reason},
        )

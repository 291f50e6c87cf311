"""Error classes for token introspection.

Every failure the middleware can observe is represented by an
``IntrospectionError`` subclass. Errors are captured into the per-request
outcome rather than raised through the request path; downstream handlers
decide what to do with them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for token introspection."""

    # Credential errors (1xxx)
    NO_BEARER = "AUTH_1006"

    # Validation errors (2xxx)
    INVALID_CONFIG = "VAL_2002"
    DECODE_ERROR = "VAL_2005"

    # Network errors (3xxx)
    TRANSPORT_ERROR = "NET_3001"
    TIMEOUT_ERROR = "NET_3002"
    STATUS_ERROR = "NET_3004"

    # Wiring errors (8xxx)
    NO_MIDDLEWARE = "CFG_8001"


class IntrospectionError(Exception):
    """Base error with structured error information."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        *,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if isinstance(code, str) else code.value
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class NoBearerError(IntrospectionError):
    """Request carried no usable bearer token."""

    def __init__(self, message: str = "no bearer") -> None:
        super().__init__(message, ErrorCode.NO_BEARER, status_code=401)


class NoMiddlewareError(IntrospectionError):
    """Outcome lookup ran on a request the middleware never saw."""

    def __init__(
        self,
        message: str = "introspection middleware didn't execute",
    ) -> None:
        super().__init__(message, ErrorCode.NO_MIDDLEWARE)


class TransportError(IntrospectionError):
    """Introspection request failed at the network layer."""

    def __init__(
        self,
        message: str = "Introspection request failed",
        *,
        code: ErrorCode = ErrorCode.TRANSPORT_ERROR,
        status_code: int | None = None,
        cause: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = dict(details or {})
        if cause is not None:
            merged["cause"] = str(cause)
        super().__init__(
            message,
            code,
            status_code=status_code,
            details=merged or None,
        )
        self.__cause__ = cause


class TimeoutError(TransportError):
    """Introspection request did not complete within the configured timeout."""

    def __init__(
        self,
        message: str = "Introspection request timed out",
        *,
        timeout_seconds: float | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.TIMEOUT_ERROR,
            status_code=408,
            cause=cause,
            details={"timeout_seconds": timeout_seconds} if timeout_seconds else None,
        )
        self.timeout_seconds = timeout_seconds


class StatusError(TransportError):
    """Endpoint answered with a non-success status and no usable body."""

    def __init__(
        self,
        status_code: int,
        message: str | None = None,
    ) -> None:
        super().__init__(
            message or f"Introspection endpoint returned status {status_code}",
            code=ErrorCode.STATUS_ERROR,
            status_code=status_code,
        )


class DecodeError(IntrospectionError):
    """Response body could not be parsed into an introspection result."""

    def __init__(
        self,
        message: str = "Failed to decode introspection response",
        *,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.DECODE_ERROR,
            status_code=status_code,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class InvalidConfigError(IntrospectionError):
    """Invalid middleware configuration."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.INVALID_CONFIG,
            details={"field": field} if field else None,
        )


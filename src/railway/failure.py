"""
Failure description — structured error information for the failure track.

Every adapter and the service facade report problems as a FailureDescription
carrying one ErrorCode. The codes are the registry's error taxonomy; the HTTP
layer maps them to status codes in railway.http_support.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique


@unique
class ErrorCode(Enum):
    """
    Structured error codes for the failure track.

    Client errors: VALIDATION, AUTHENTICATION, AUTHORIZATION, NOT_FOUND, ALREADY_EXISTS.
    Server errors: STORAGE_UNAVAILABLE, EXTERNAL_SERVICE, TECHNICAL.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Malformed id, missing field, maker-checker violation, illegal state transition."""

    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    """Missing, invalid or expired bearer token."""

    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
    """Caller does not hold the required privilege."""

    NOT_FOUND = "NOT_FOUND"
    """Certificate or request does not exist."""

    ALREADY_EXISTS = "ALREADY_EXISTS"
    """Duplicate identifier on create."""

    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    """Document store unreachable or a write failed."""

    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    """Identity provider or another upstream call failed."""

    TECHNICAL_ERROR = "TECHNICAL_ERROR"
    """Unexpected/unclassified failures."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying error code, message, optional exception, and timestamp.

    >>> desc = FailureDescription(ErrorCode.NOT_FOUND, "Certificate request not found")
    >>> desc.code
    <ErrorCode.NOT_FOUND: 'NOT_FOUND'>
    """

    code: ErrorCode
    message: str
    exception: BaseException | None = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def full_stack_trace(self) -> str:
        """Message followed by the formatted exception chain, if an exception is attached."""
        if self.exception is None:
            return self.message
        tb = "".join(
            traceback.format_exception(type(self.exception), self.exception, self.exception.__traceback__)
        )
        return f"{self.message}\n{tb}"

"""
HTTP integration — ErrorCode→HTTP status mapping and FastAPI response builders.

    status = HttpStatusMapper.map_error_code(ErrorCode.NOT_FOUND)  # → 404

    @app.post("/certs/{request_id}/approve")
    def approve(request_id: str) -> JSONResponse:
        return build_fastapi_response(service.approve(request_id, caller.username).map(to_json))
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, TypeVar

from fastapi.responses import JSONResponse

from railway.failure import ErrorCode, FailureDescription
from railway.result import Result

T = TypeVar("T")


# ──────────────────────── Error Code → HTTP Status Mapping ────────────────────────


class HttpStatusMapper:
    """Maps ErrorCode enum values to HTTP status codes."""

    _CODE_TO_STATUS: dict[ErrorCode, int] = {
        # Client errors (4xx)
        ErrorCode.VALIDATION_ERROR: 400,
        ErrorCode.AUTHENTICATION_ERROR: 401,
        ErrorCode.AUTHORIZATION_ERROR: 403,
        ErrorCode.NOT_FOUND: 404,
        ErrorCode.ALREADY_EXISTS: 409,
        # Server errors (5xx)
        ErrorCode.TECHNICAL_ERROR: 500,
        ErrorCode.EXTERNAL_SERVICE_ERROR: 502,
        ErrorCode.STORAGE_UNAVAILABLE: 503,
    }

    @classmethod
    def map_error_code(cls, code: ErrorCode) -> int:
        return cls._CODE_TO_STATUS.get(code, 500)

    @classmethod
    def map_failure(cls, failure: FailureDescription) -> int:
        return cls.map_error_code(failure.code)


# ──────────────────────── Error Response DTO ────────────────────────


@dataclass(frozen=True, slots=True)
class ErrorResponse:
    """
    Standardized error response body.

        {
            "error_code": "VALIDATION_ERROR",
            "message": "Certificate request cannot be approved by the same user who created it",
            "timestamp": "2026-02-17T10:30:00+00:00"
        }
    """

    error_code: str
    message: str
    timestamp: str

    @staticmethod
    def from_failure(failure: FailureDescription) -> ErrorResponse:
        return ErrorResponse(
            error_code=failure.code.value,
            message=failure.message,
            timestamp=failure.timestamp.isoformat(),
        )

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


# ──────────────────────── Response Builders ────────────────────────


def build_response(
    result: Result[T],
    success_status: int = 200,
) -> tuple[Any, int]:
    """Build a framework-agnostic (body, status_code) tuple from a Result."""
    return result.either(
        on_success=lambda value: (value, success_status),
        on_failure=lambda error: (
            ErrorResponse.from_failure(error).to_dict(),
            HttpStatusMapper.map_failure(error),
        ),
    )


def build_error_response(failure: FailureDescription) -> JSONResponse:
    """Build a JSONResponse for a failure without a surrounding Result."""
    return JSONResponse(
        content=ErrorResponse.from_failure(failure).to_dict(),
        status_code=HttpStatusMapper.map_failure(failure),
    )


def build_fastapi_response(
    result: Result[T],
    success_status: int = 200,
) -> JSONResponse:
    """
    Build a FastAPI JSONResponse from a Result.

    The success value must already be JSON-compatible.
    """
    body, status = build_response(result, success_status)
    return JSONResponse(content=body, status_code=status)

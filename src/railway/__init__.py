"""
Railway-Oriented Programming (ROP) helpers shared by the registry.

Explicit, composable error handling — adapters return Result, never raise:

    from railway import ErrorCode, Result

    def parse_participant_id(raw: str) -> Result[str]:
        if not raw:
            return Result.failure(ErrorCode.VALIDATION_ERROR, "participantId is required")
        return Result.success(raw)
"""

from railway.assertions import ResultAssertions
from railway.failure import ErrorCode, FailureDescription
from railway.result import Failure, Result, Success

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ResultAssertions",
]

__version__ = "1.0.0"

"""
Railway-Oriented Programming (ROP) framework.

Explicit, composable error handling — adapters turn exceptions into values
and business logic only ever sees Result.

    from railway import Result, ErrorCode

    def require_pairs(count: int) -> Result[int]:
        if count < 2:
            return Result.failure(ErrorCode.VALIDATION_ERROR, "need at least two")
        return Result.success(count)
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.execution import (
    ExecutionContext,
    NoOpExecutionContext,
    LoggingExecutionContext,
)
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ExecutionContext",
    "NoOpExecutionContext",
    "LoggingExecutionContext",
    "ResultAssertions",
]

__version__ = "1.1.0"

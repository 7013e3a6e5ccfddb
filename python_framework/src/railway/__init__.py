"""
Railway-Oriented Programming (ROP) toolkit.

Explicit, composable error handling: operations return a Result that is either
on the success track or on the failure track, and failures carry a structured
FailureDescription instead of being raised.

    from railway import Result, ErrorCode

    def require_hostname(hostname: str) -> Result[str]:
        if not hostname.strip():
            return Result.failure(ErrorCode.VALIDATION_ERROR, "Hostname is required")
        return Result.success(hostname.strip().lower())

    result = require_hostname(" Shop.Example.com ").map(lambda h: f"bound {h}")
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

"""
Execution contexts — separate WHAT (a Result-returning computation) from HOW it runs.

A context wraps a zero-argument computation returning Result[T] and adds a
cross-cutting concern around it (logging, timing) without the computation
knowing. Contexts are structural (Protocol): any object with a matching
``execute`` qualifies.

    ctx = LoggingExecutionContext(operation="register", hostname="shop.example.com")
    result = ctx.execute(lambda: allocator.register("shop.example.com"))
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

import structlog

from railway.failure import ErrorCode, FailureDescription
from railway.result import Failure, Result

T = TypeVar("T")
log = structlog.get_logger("railway.execution")


@runtime_checkable
class ExecutionContext(Protocol):
    """Anything that can run a Result-returning computation."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]: ...


class NoOpExecutionContext:
    """Runs the computation as-is. Useful in unit tests."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        return computation()


class LoggingExecutionContext:
    """
    Logs start, duration and outcome of the wrapped computation.

    An exception escaping the computation is logged and converted to a
    TECHNICAL_ERROR failure so callers always receive a Result. Failures are
    logged with their code and kind; the failure itself is returned unchanged.
    """

    def __init__(
        self,
        inner: ExecutionContext | None = None,
        operation: str = "unknown",
        log_level: int = logging.INFO,
        **context: Any,
    ) -> None:
        self._inner = inner or NoOpExecutionContext()
        self._operation = operation
        self._log_level = log_level
        self._context = context

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        bound = log.bind(operation=self._operation, **self._context)
        bound.log(self._log_level, "execution.started")
        start = time.monotonic()

        try:
            result = self._inner.execute(computation)
        except Exception as e:
            bound.exception(
                "execution.crashed",
                elapsed_seconds=round(time.monotonic() - start, 3),
            )
            return Failure(
                FailureDescription(
                    ErrorCode.TECHNICAL_ERROR,
                    f"Execution of {self._operation} failed: {e}",
                    e,
                )
            )

        elapsed = round(time.monotonic() - start, 3)
        if result.is_success():
            bound.log(self._log_level, "execution.succeeded", elapsed_seconds=elapsed)
        else:
            err = result.error()
            bound.warning(
                "execution.failed",
                elapsed_seconds=elapsed,
                error_code=err.code.value,
                kind=err.kind.name if err.kind is not None else None,
                message=err.message,
            )
        return result

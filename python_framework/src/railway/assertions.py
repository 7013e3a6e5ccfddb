"""
Test assertions for Result values.

    from railway import ResultAssertions

    binding = ResultAssertions.assert_success(allocator.register("a.example.com"))
    error = ResultAssertions.assert_failure(result, ErrorCode.CONFLICT_ERROR)
    ResultAssertions.assert_failure_kind(result, FailureKind.ALIAS_ALREADY_EXISTS)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

from railway.failure import ErrorCode, FailureDescription
from railway.result import Result

T = TypeVar("T")


class ResultAssertions:
    """Assertions that print the other track's content when they fail."""

    @staticmethod
    def assert_success(result: Result[T], message: str = "") -> T:
        """Assert Success and return the wrapped value."""
        context = f" — {message}" if message else ""
        assert result.is_success(), (
            f"Expected Success but got Failure("
            f"{result.error().code.value}: {result.error().message!r}){context}"
        )
        return result.value()

    @staticmethod
    def assert_failure(
        result: Result[T],
        expected_code: ErrorCode | None = None,
        message: str = "",
    ) -> FailureDescription:
        """Assert Failure, optionally with a given code, and return the description."""
        context = f" — {message}" if message else ""
        assert result.is_failure(), (
            f"Expected Failure but got Success({result.value()!r}){context}"
        )
        error = result.error()
        if expected_code is not None:
            assert error.code == expected_code, (
                f"Expected error code {expected_code.value} "
                f"but got {error.code.value}: {error.message!r}{context}"
            )
        return error

    @staticmethod
    def assert_failure_kind(result: Result[T], expected_kind: Enum) -> FailureDescription:
        """Assert Failure whose ``kind`` is exactly ``expected_kind``."""
        error = ResultAssertions.assert_failure(result)
        actual = error.kind.name if error.kind is not None else None
        assert error.kind is expected_kind, (
            f"Expected failure kind {expected_kind.name} "
            f"but got {actual}: {error.message!r}"
        )
        return error

    @staticmethod
    def assert_failure_message_contains(result: Result[T], substring: str) -> None:
        error = ResultAssertions.assert_failure(result)
        assert substring.lower() in error.message.lower(), (
            f"Expected failure message to contain {substring!r} "
            f"but message was: {error.message!r}"
        )

    @staticmethod
    def assert_success_value(result: Result[T], expected_value: Any) -> None:
        value = ResultAssertions.assert_success(result)
        assert value == expected_value, (
            f"Expected success value {expected_value!r} but got {value!r}"
        )

"""
Result — the two-track value at the heart of Railway-Oriented Programming.

A Result[T] is either Success(value: T) or Failure(error: FailureDescription).
Operations return Result instead of raising; the failure track short-circuits
every later step of a chain:

    fetch ──Success──▶ check ──Success──▶ write ──▶ Result[T]
      │ Failure          │ Failure          │ Failure
      └──────────────────┴──────────────────┴──────▶ Result[T]

Structural pattern matching is supported:

    match result:
        case Success(value): ...
        case Failure(error): ...
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from railway.failure import ErrorCode, FailureDescription

T = TypeVar("T")
U = TypeVar("U")
R = TypeVar("R")


class Result(Generic[T]):
    """
    Success(value) or Failure(error). Transformations only run on the success track.

        >>> Result.success(21).map(lambda x: x * 2).value()
        42
        >>> Result.failure(ErrorCode.NOT_FOUND, "gone").map(lambda x: x * 2).is_failure()
        True
    """

    # ──────────────────────── Introspection ────────────────────────

    def is_success(self) -> bool:
        return isinstance(self, Success)

    def is_failure(self) -> bool:
        return isinstance(self, Failure)

    def value(self) -> T:
        """Success value. Raises ValueError on a Failure; prefer either() or match."""
        match self:
            case Success(v):
                return v
            case Failure(err):
                raise ValueError(f"Cannot get value from a Failure: {err.message}")
        raise TypeError("unreachable")  # pragma: no cover

    def error(self) -> FailureDescription:
        """Failure description. Raises ValueError on a Success."""
        match self:
            case Failure(err):
                return err
            case Success(v):
                raise ValueError(f"Cannot get error from a Success: {v}")
        raise TypeError("unreachable")  # pragma: no cover

    # ──────────────────────── Transformations ────────────────────────

    def either(
        self,
        on_success: Callable[[T], R],
        on_failure: Callable[[FailureDescription], R],
    ) -> R:
        """Fold both tracks into a single value."""
        match self:
            case Success(v):
                return on_success(v)
            case Failure(err):
                return on_failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def map(self, mapper: Callable[[T], U]) -> Result[U]:
        match self:
            case Success(v):
                return Success(mapper(v))
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def map_failure(
        self, mapper: Callable[[FailureDescription], FailureDescription]
    ) -> Result[T]:
        """Rewrite the failure description; success passes through untouched."""
        match self:
            case Success(_):
                return self
            case Failure(err):
                return Failure(mapper(err))
        raise TypeError("unreachable")  # pragma: no cover

    def flat_map(self, mapper: Callable[[T], Result[U]]) -> Result[U]:
        """
        Chain a Result-returning step. This is the operator that joins railway segments.

            fetch(distribution_id).flat_map(check_capacity).flat_map(submit_update)
        """
        match self:
            case Success(v):
                return mapper(v)
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def ensure(
        self,
        predicate: Callable[[T], bool],
        error: FailureDescription | Callable[[T], FailureDescription],
    ) -> Result[T]:
        """
        Keep the success value only if ``predicate`` holds.

        ``error`` may be a fixed description or a function of the rejected value,
        so the failure can name the offending resource.
        """

        def _check(v: T) -> Result[T]:
            if predicate(v):
                return Success(v)
            return Failure(error(v) if callable(error) else error)

        return self.flat_map(_check)

    # ──────────────────────── Side Effects ────────────────────────

    def peek(self, action: Callable[[T], Any]) -> Result[T]:
        """Run a side effect (logging, call counting) on the success value."""
        match self:
            case Success(v):
                action(v)
        return self

    def peek_failure(self, action: Callable[[FailureDescription], Any]) -> Result[T]:
        match self:
            case Failure(err):
                action(err)
        return self

    # ──────────────────────── Recovery ────────────────────────

    def recover(self, recovery_fn: Callable[[FailureDescription], T]) -> Result[T]:
        """Turn any failure into a success value."""
        match self:
            case Success(_):
                return self
            case Failure(err):
                return Success(recovery_fn(err))
        raise TypeError("unreachable")  # pragma: no cover

    def recover_if(
        self,
        predicate: Callable[[FailureDescription], bool],
        recovery_fn: Callable[[FailureDescription], T],
    ) -> Result[T]:
        """
        Recover only the failures selected by ``predicate``; others stay on the failure track.

            delete(name).recover_if(lambda e: e.code is ErrorCode.NOT_FOUND, lambda _: name)
        """
        match self:
            case Failure(err) if predicate(err):
                return Success(recovery_fn(err))
        return self

    def get_or_else(self, default: T) -> T:
        match self:
            case Success(v):
                return v
            case _:
                return default

    # ──────────────────────── Execution Context ────────────────────────

    def within(self, execution_context: Any) -> Result[T]:
        """Run this (already computed) Result through an execution context."""
        return execution_context.execute(lambda: self)

    # ──────────────────────── Static Factories ────────────────────────

    @staticmethod
    def success(value: T) -> Result[T]:
        return Success(value)

    @staticmethod
    def failure_from(error: FailureDescription) -> Result[T]:
        return Failure(error)

    @staticmethod
    def failure(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
        kind: Optional[Enum] = None,
        **details: Any,
    ) -> Result[T]:
        """
        Failure with error code, message, optional exception, kind and details.

            Result.failure(ErrorCode.NOT_FOUND, "Distribution gone", distribution_id="E2ABC")
        """
        return Failure(FailureDescription.create(code, message, exception, kind, **details))

    @staticmethod
    def from_computation(
        computation: Callable[[], T],
        error_code: ErrorCode,
        error_message: str,
    ) -> Result[T]:
        """
        Run a computation that may raise; exceptions land on the failure track.

            Result.from_computation(
                lambda: x509.load_pem_x509_certificate(body),
                ErrorCode.VALIDATION_ERROR,
                "Certificate body is not valid PEM",
            )
        """
        try:
            return Result.success(computation())
        except Exception as e:
            return Result.failure(error_code, error_message, e)

    @staticmethod
    def from_optional(
        value: Optional[T],
        error_message: str,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ) -> Result[T]:
        if value is not None:
            return Result.success(value)
        return Result.failure(error_code, error_message)

    # ──────────────────────── Dunder methods ────────────────────────

    def __bool__(self) -> bool:
        return self.is_success()

    def __repr__(self) -> str:
        match self:
            case Success(v):
                return f"Success({v!r})"
            case Failure(err):
                return f"Failure({err.code.value}: {err.message!r})"
        raise TypeError("unreachable")  # pragma: no cover

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        match (self, other):
            case (Success(a), Success(b)):
                return a == b
            case (Failure(a), Failure(b)):
                return a.code == b.code and a.message == b.message and a.kind == b.kind
            case _:
                return False


@dataclass(frozen=True, slots=True)
class Success(Result[T]):
    """The success track — wraps a non-None value of type T."""

    _value: T

    def __init__(self, value: T) -> None:
        if value is None:
            raise TypeError("Success value must not be None")
        object.__setattr__(self, "_value", value)

    def __repr__(self) -> str:
        return f"Success({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Success):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Success", self._value))


Success.__match_args__ = ("_value",)


@dataclass(frozen=True, slots=True)
class Failure(Result[T]):
    """The failure track — wraps a FailureDescription."""

    _error: FailureDescription

    def __init__(self, error: FailureDescription) -> None:
        if error is None:
            raise TypeError("Failure error must not be None")
        object.__setattr__(self, "_error", error)

    def __repr__(self) -> str:
        kind = f" [{self._error.kind.name}]" if self._error.kind is not None else ""
        return f"Failure({self._error.code.value}{kind}: {self._error.message!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Failure):
            return (
                self._error.code == other._error.code
                and self._error.message == other._error.message
                and self._error.kind == other._error.kind
            )
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Failure", self._error.code, self._error.message, self._error.kind))


Failure.__match_args__ = ("_error",)

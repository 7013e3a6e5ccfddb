"""
HTTP integration — ErrorCode → HTTP status mapping and FastAPI response building.

    status = HttpStatusMapper.map_error_code(ErrorCode.CONFLICT_ERROR)  # → 409
    return build_fastapi_response(result, success_status=201)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from fastapi.responses import JSONResponse

from railway.failure import ErrorCode, FailureDescription
from railway.result import Result

T = TypeVar("T")


class HttpStatusMapper:
    """Maps ErrorCode values to HTTP status codes."""

    _CODE_TO_STATUS: dict[ErrorCode, int] = {
        # Client errors (4xx)
        ErrorCode.VALIDATION_ERROR: 400,
        ErrorCode.NOT_FOUND: 404,
        ErrorCode.CONFLICT_ERROR: 409,
        ErrorCode.BUSINESS_RULE_ERROR: 422,
        # Server errors (5xx)
        ErrorCode.TECHNICAL_ERROR: 500,
        ErrorCode.CONFIGURATION_ERROR: 500,
        ErrorCode.EXTERNAL_SERVICE_ERROR: 502,
        ErrorCode.TIMEOUT_ERROR: 504,
        ErrorCode.UNKNOWN_ERROR: 500,
    }

    @classmethod
    def map_error_code(cls, code: ErrorCode) -> int:
        return cls._CODE_TO_STATUS.get(code, 500)

    @classmethod
    def map_failure(cls, failure: FailureDescription) -> int:
        return cls.map_error_code(failure.code)


def to_jsonable(value: Any) -> Any:
    """Convert dataclasses, enums, datetimes and containers into JSON-safe values."""
    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, list | tuple | set | frozenset):
        return [to_jsonable(v) for v in value]
    if isinstance(value, str | int | float | bool) or value is None:
        return value
    return str(value)


@dataclass(frozen=True, slots=True)
class ErrorResponse:
    """
    Standardized error response body.

        {
            "error_code": "CONFLICT_ERROR",
            "kind": "ALIAS_ALREADY_EXISTS",
            "message": "shop.example.com is already bound to E2QWRUHAPOMQZL",
            "details": {"hostname": "shop.example.com", "distribution_id": "E2QWRUHAPOMQZL"},
            "timestamp": "2026-02-17T10:30:00+00:00"
        }
    """

    error_code: str
    message: str
    timestamp: str
    kind: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_failure(failure: FailureDescription) -> ErrorResponse:
        return ErrorResponse(
            error_code=failure.code.value,
            message=failure.message,
            timestamp=failure.timestamp.isoformat(),
            kind=failure.kind.name if failure.kind is not None else None,
            details=to_jsonable(dict(failure.details)),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def build_response(
    result: Result[T],
    success_status: int = 200,
    serialize: Callable[[T], Any] = to_jsonable,
) -> tuple[Any, int]:
    """Framework-agnostic ``(body, status)`` for a Result."""
    return result.either(
        on_success=lambda value: (serialize(value), success_status),
        on_failure=lambda error: (
            ErrorResponse.from_failure(error).to_dict(),
            HttpStatusMapper.map_failure(error),
        ),
    )


def build_fastapi_response(
    result: Result[T],
    success_status: int = 200,
    serialize: Callable[[T], Any] = to_jsonable,
) -> JSONResponse:
    body, status = build_response(result, success_status, serialize)
    return JSONResponse(content=body, status_code=status)

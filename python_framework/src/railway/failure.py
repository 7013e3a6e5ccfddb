"""
Failure description — structured error information for the failure track.

An ErrorCode says which broad class of failure happened (and therefore how a
transport such as HTTP should report it). The optional ``kind`` is a
caller-defined, stable, machine-readable discriminator inside that class, and
``details`` carries the structured context an operator or retry policy needs
(offending hostname, resource id, ...) without re-parsing the message.
"""

from __future__ import annotations

import traceback
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum, unique
from types import MappingProxyType
from typing import Any, Optional

_EMPTY_DETAILS: Mapping[str, Any] = MappingProxyType({})


@unique
class ErrorCode(Enum):
    """
    Structured error codes for the failure track.

    Client errors (4xx): VALIDATION, NOT_FOUND, CONFLICT, BUSINESS_RULE
    Server errors (5xx): TECHNICAL, CONFIGURATION, EXTERNAL_SERVICE, TIMEOUT, UNKNOWN
    """

    # --- Client-side errors (4xx HTTP range) ---
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Invalid input: malformed payload, unknown explicit resource id (→ 400)."""

    NOT_FOUND = "NOT_FOUND"
    """Resource doesn't exist (→ 404)."""

    CONFLICT_ERROR = "CONFLICT_ERROR"
    """Concurrent modification or duplicate resource (→ 409)."""

    BUSINESS_RULE_ERROR = "BUSINESS_RULE_ERROR"
    """Domain constraint failed, e.g. no capacity left (→ 422)."""

    # --- Server-side errors (5xx HTTP range) ---
    TECHNICAL_ERROR = "TECHNICAL_ERROR"
    """Unexpected local failure (→ 500)."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """System misconfiguration (→ 500)."""

    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    """Remote service call failed; the provider exception is attached (→ 502)."""

    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    """Operation exceeded time limit, outcome unknown (→ 504)."""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    """Unclassified failure (→ 500)."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor.

    >>> desc = FailureDescription(ErrorCode.VALIDATION_ERROR, "Hostname is required")
    >>> desc.code
    <ErrorCode.VALIDATION_ERROR: 'VALIDATION_ERROR'>
    >>> desc.kind is None
    True
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    kind: Optional[Enum] = None
    details: Mapping[str, Any] = field(default=_EMPTY_DETAILS, compare=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC), compare=False)

    @staticmethod
    def create(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
        kind: Optional[Enum] = None,
        **details: Any,
    ) -> FailureDescription:
        """Build a description, collecting keyword arguments into ``details``."""
        return FailureDescription(
            code=code,
            message=message,
            exception=exception,
            kind=kind,
            details=MappingProxyType(dict(details)),
        )

    def is_kind(self, kind: Enum) -> bool:
        return self.kind is kind

    def with_details(self, **extra: Any) -> FailureDescription:
        """Return a copy whose details are extended (and overridden) by ``extra``."""
        merged = {**self.details, **extra}
        return replace(self, details=MappingProxyType(merged))

    def full_stack_trace(self) -> str:
        """Message followed by the formatted exception chain, if any."""
        if self.exception is None:
            return self.message
        tb = "".join(
            traceback.format_exception(type(self.exception), self.exception, self.exception.__traceback__)
        )
        return f"{self.message}\n{tb}"

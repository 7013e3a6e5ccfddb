"""
Failure kinds and factories for the domain's failure track.

Each factory returns a Result.failure carrying an ErrorCode (transport
category), a stable FailureKind, and the structured context an operator needs.
Unclassified remote errors are not wrapped here: adapters return them as
EXTERNAL_SERVICE_ERROR with the provider exception attached verbatim.
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Any

from railway import ErrorCode, FailureDescription, Result


@unique
class FailureKind(Enum):
    INVALID_HOSTNAME = "invalid_hostname"
    INVALID_DISTRIBUTION = "invalid_distribution"
    MALFORMED_CERTIFICATE = "malformed_certificate"
    RESOURCE_NOT_FOUND = "resource_not_found"
    NO_MATCHING_DISTRIBUTION = "no_matching_distribution"
    NO_CAPACITY_AVAILABLE = "no_capacity_available"
    ALIAS_ALREADY_EXISTS = "alias_already_exists"
    CONCURRENT_MODIFICATION = "concurrent_modification"
    CERTIFICATE_ALREADY_EXISTS = "certificate_already_exists"
    DISTRIBUTION_PROVISIONING_FAILED = "distribution_provisioning_failed"
    TRANSFER_INCOMPLETE = "transfer_incomplete"


def is_not_found(error: FailureDescription) -> bool:
    return error.code is ErrorCode.NOT_FOUND


def invalid_hostname(hostname: str) -> Result[Any]:
    return Result.failure(
        ErrorCode.VALIDATION_ERROR,
        f"Invalid hostname: {hostname!r}",
        kind=FailureKind.INVALID_HOSTNAME,
        hostname=hostname,
    )


def invalid_distribution(distribution_id: str, cause: FailureDescription | None = None) -> Result[Any]:
    return Result.failure(
        ErrorCode.VALIDATION_ERROR,
        f"Distribution {distribution_id} does not exist",
        cause.exception if cause is not None else None,
        kind=FailureKind.INVALID_DISTRIBUTION,
        distribution_id=distribution_id,
    )


def resource_not_found(resource: str, identifier: str, exception: BaseException | None = None) -> Result[Any]:
    return Result.failure(
        ErrorCode.NOT_FOUND,
        f"{resource} not found: {identifier}",
        exception,
        kind=FailureKind.RESOURCE_NOT_FOUND,
        resource=resource,
        identifier=identifier,
    )


def no_matching_distribution(candidates: int) -> Result[Any]:
    return Result.failure(
        ErrorCode.NOT_FOUND,
        f"No distribution matched among {candidates} candidate(s)",
        kind=FailureKind.NO_MATCHING_DISTRIBUTION,
        candidates=candidates,
    )


def no_capacity_available(hostname: str, capacity: int, distribution_id: str | None = None) -> Result[Any]:
    where = f"distribution {distribution_id}" if distribution_id else "the shared pool"
    return Result.failure(
        ErrorCode.BUSINESS_RULE_ERROR,
        f"No alias capacity left in {where} for {hostname} (capacity {capacity})",
        kind=FailureKind.NO_CAPACITY_AVAILABLE,
        hostname=hostname,
        capacity=capacity,
        distribution_id=distribution_id,
    )


def alias_already_exists(hostname: str, distribution_id: str, exception: BaseException | None = None) -> Result[Any]:
    return Result.failure(
        ErrorCode.CONFLICT_ERROR,
        f"{hostname} is already bound to {distribution_id}",
        exception,
        kind=FailureKind.ALIAS_ALREADY_EXISTS,
        hostname=hostname,
        distribution_id=distribution_id,
        bound_to=distribution_id,
    )


def concurrent_modification(distribution_id: str, exception: BaseException | None = None) -> Result[Any]:
    return Result.failure(
        ErrorCode.CONFLICT_ERROR,
        f"Distribution {distribution_id} was modified by another writer since it was read",
        exception,
        kind=FailureKind.CONCURRENT_MODIFICATION,
        distribution_id=distribution_id,
    )


def malformed_certificate(message: str, exception: BaseException | None = None, **details: Any) -> Result[Any]:
    return Result.failure(
        ErrorCode.VALIDATION_ERROR,
        message,
        exception,
        kind=FailureKind.MALFORMED_CERTIFICATE,
        **details,
    )


def certificate_already_exists(
    stored_name: str,
    exception: BaseException | None = None,
    common_name: str | None = None,
) -> Result[Any]:
    if common_name is None:
        return Result.failure(
            ErrorCode.CONFLICT_ERROR,
            f"A certificate named {stored_name} already exists",
            exception,
            kind=FailureKind.CERTIFICATE_ALREADY_EXISTS,
            stored_name=stored_name,
        )
    return Result.failure(
        ErrorCode.CONFLICT_ERROR,
        f"A certificate named {stored_name} already exists (common name {common_name})",
        exception,
        kind=FailureKind.CERTIFICATE_ALREADY_EXISTS,
        common_name=common_name,
        stored_name=stored_name,
    )

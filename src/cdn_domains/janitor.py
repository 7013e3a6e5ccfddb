"""
Certificate janitor — retire managed certificates nothing uses any more.

A certificate is retired when all of these hold:
  - no distribution references it (``in_use_by`` is empty)
  - its status is one of the configured retire statuses
  - it was created more than ``min_age`` ago (a freshly requested certificate
    is not yet attached and must survive until its owner binds it)

Certificates are described and deleted one at a time. The first failure
other than "already gone" stops the run and is returned.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime, timedelta

import structlog
from railway.result import Failure, Result, Success

from cdn_domains.domain.errors import is_not_found
from cdn_domains.domain.models import ManagedCertificate
from cdn_domains.domain.ports import ManagedCertificateAuthority

log = structlog.get_logger()


def is_retirable(
    certificate: ManagedCertificate,
    min_age: timedelta,
    retire_statuses: Collection[str],
    now: datetime,
) -> bool:
    if certificate.in_use:
        return False
    if certificate.status not in retire_statuses:
        return False
    if certificate.created_at is None:
        return False
    return now - certificate.created_at >= min_age


def retire_unused_certificates(
    authority: ManagedCertificateAuthority,
    min_age: timedelta,
    retire_statuses: Collection[str],
    now: datetime,
) -> Result[int]:
    """Delete every retirable managed certificate; returns how many were deleted."""
    return authority.list_certificates().flat_map(
        lambda arns: _retire_each(authority, arns, min_age, retire_statuses, now)
    )


def _retire_each(
    authority: ManagedCertificateAuthority,
    arns: list[str],
    min_age: timedelta,
    retire_statuses: Collection[str],
    now: datetime,
) -> Result[int]:
    retired = 0
    for arn in arns:
        match authority.describe_certificate(arn):
            case Success(certificate) if is_retirable(certificate, min_age, retire_statuses, now):
                pass
            case Success(_):
                continue
            case Failure(err) if is_not_found(err):
                continue
            case Failure(err):
                return Failure(err.with_details(arn=arn, retired_before_failure=retired))

        match authority.delete_certificate(arn):
            case Success(_):
                retired += 1
                log.info("janitor.certificate_retired", arn=arn, status=certificate.status)
            case Failure(err) if is_not_found(err):
                continue
            case Failure(err):
                return Failure(err.with_details(arn=arn, retired_before_failure=retired))

    log.info("janitor.completed", scanned=len(arns), retired=retired)
    return Result.success(retired)

"""
DomainManager — the single entry point callers use.

Wires the allocator, the certificate coordinator and the transfer orchestrator
behind one object and runs every operation inside a LoggingExecutionContext,
so each call logs its start, duration and outcome with the operation name and
its identifying arguments bound. An unexpected exception escaping an
operation is turned into a TECHNICAL_ERROR failure by the context.

The manager holds no mutable state; any number of calls may run concurrently.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar

from railway import LoggingExecutionContext
from railway.result import Result

from cdn_domains.allocator import AliasAllocator
from cdn_domains.certificates import CertificateLifecycleCoordinator
from cdn_domains.domain.models import (
    AliasBinding,
    Certificate,
    CertificateUpload,
    DistributionStatus,
    TransferOutcome,
    UnregisterOutcome,
)
from cdn_domains.domain.ports import DistributionClient, ManagedCertificateAuthority
from cdn_domains.janitor import retire_unused_certificates
from cdn_domains.transfer import transfer_domain

T = TypeVar("T")


class DomainManager:
    def __init__(
        self,
        allocator: AliasAllocator,
        coordinator: CertificateLifecycleCoordinator,
        distributions: DistributionClient,
        authority: ManagedCertificateAuthority,
        retire_min_age: timedelta = timedelta(hours=72),
        retire_statuses: Sequence[str] = ("ISSUED", "EXPIRED", "FAILED"),
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._allocator = allocator
        self._coordinator = coordinator
        self._distributions = distributions
        self._authority = authority
        self._retire_min_age = retire_min_age
        self._retire_statuses = tuple(retire_statuses)
        self._clock = clock

    @staticmethod
    def _run(operation: str, computation: Callable[[], Result[T]], **context: Any) -> Result[T]:
        return LoggingExecutionContext(operation=operation, **context).execute(computation)

    # ─────────────────────── custom domains ───────────────────────

    def register(self, hostname: str, distribution_id: str | None = None) -> Result[AliasBinding]:
        return self._run(
            "register",
            lambda: self._allocator.register(hostname, distribution_id),
            hostname=hostname,
            distribution_id=distribution_id,
        )

    def unregister(self, hostname: str, distribution_id: str | None = None) -> Result[UnregisterOutcome]:
        return self._run(
            "unregister",
            lambda: self._allocator.unregister(hostname, distribution_id),
            hostname=hostname,
            distribution_id=distribution_id,
        )

    def is_registered(self, hostname: str) -> Result[bool]:
        return self._run("is_registered", lambda: self._allocator.is_registered(hostname), hostname=hostname)

    def find_binding(self, hostname: str) -> Result[AliasBinding]:
        return self._run("find_binding", lambda: self._allocator.find_binding(hostname), hostname=hostname)

    def transfer_domain(self, hostname: str, source_id: str, target_id: str) -> Result[TransferOutcome]:
        return self._run(
            "transfer_domain",
            lambda: transfer_domain(self._allocator, hostname, source_id, target_id),
            hostname=hostname,
            source_id=source_id,
            target_id=target_id,
        )

    # ─────────────────────── customer certificates ───────────────────────

    def upload_certificate(self, upload: CertificateUpload) -> Result[Certificate]:
        return self._run(
            "upload_certificate",
            lambda: self._coordinator.upload_certificate(upload),
            rotation=upload.rotation,
        )

    def provision_distribution(self, certificate: Certificate) -> Result[Certificate]:
        return self._run(
            "provision_distribution",
            lambda: self._coordinator.provision_distribution(certificate),
            stored_name=certificate.stored_name,
        )

    def delete_certificate(self, certificate: Certificate) -> Result[Certificate]:
        return self._run(
            "delete_certificate",
            lambda: self._coordinator.delete_certificate(certificate),
            stored_name=certificate.stored_name,
            distribution_id=certificate.distribution_id,
        )

    # ─────────────────────── managed certificates ───────────────────────

    def request_managed_certificate(self, apex_domain: str) -> Result[str]:
        return self._run(
            "request_managed_certificate",
            lambda: self._coordinator.request_managed_certificate(apex_domain),
            apex_domain=apex_domain,
        )

    def get_certificate_status(self, arn: str) -> Result[str]:
        return self._run("get_certificate_status", lambda: self._coordinator.get_certificate_status(arn), arn=arn)

    def resend_validation_email(self, domain: str, arn: str) -> Result[str]:
        return self._run(
            "resend_validation_email",
            lambda: self._coordinator.resend_validation_email(domain, arn),
            domain=domain,
            arn=arn,
        )

    def delete_managed_certificate(self, arn: str) -> Result[str]:
        return self._run(
            "delete_managed_certificate",
            lambda: self._coordinator.delete_managed_certificate(arn),
            arn=arn,
        )

    def retire_unused_certificates(self) -> Result[int]:
        return self._run(
            "retire_unused_certificates",
            lambda: retire_unused_certificates(
                self._authority,
                self._retire_min_age,
                self._retire_statuses,
                self._clock(),
            ),
        )

    # ─────────────────────── distributions ───────────────────────

    def get_distribution_status(self, distribution_id: str) -> Result[DistributionStatus]:
        return self._run(
            "get_distribution_status",
            lambda: self._distributions.get_distribution(distribution_id).map(lambda d: d.status),
            distribution_id=distribution_id,
        )

    def disable_distribution(self, distribution_id: str) -> Result[DistributionStatus]:
        """
        Conditionally update a distribution to ``Enabled: false``.

        Already-disabled distributions are left untouched. CloudFront deletes
        only disabled distributions whose status is Deployed again.
        """
        return self._run(
            "disable_distribution",
            lambda: self._distributions.get_distribution(distribution_id).flat_map(
                lambda d: (
                    Result.success(d.status)
                    if not d.enabled
                    else self._distributions.update_distribution(d.id, d.with_enabled(False), d.version).map(
                        lambda updated: updated.status
                    )
                )
            ),
            distribution_id=distribution_id,
        )

    def delete_distribution(self, distribution_id: str) -> Result[str]:
        return self._run(
            "delete_distribution",
            lambda: self._distributions.delete_distribution(distribution_id),
            distribution_id=distribution_id,
        )

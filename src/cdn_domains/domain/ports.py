"""
Ports — Protocol-based interfaces for the remote services this package drives.

These define WHAT the core needs without saying HOW it is done:

  Core (finder, allocator, coordinator) ← Ports (protocols) ← Adapters (boto3, cryptography)

Every method returns a Result. Adapters translate provider errors at the
boundary: a missing resource becomes ErrorCode.NOT_FOUND, the two write-time
conflicts become CONFLICT_ERROR failures with a FailureKind, and everything
else is EXTERNAL_SERVICE_ERROR with the provider exception attached.

Delete operations are idempotent: deleting something already gone succeeds
and returns the identifier that was asked for.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from railway.result import Result

from cdn_domains.domain.models import (
    Distribution,
    ManagedCertificate,
    ParsedCertificate,
    StoredKeyMaterial,
    VersionToken,
)


@runtime_checkable
class DistributionClient(Protocol):
    """
    Port: read and conditionally write CDN distributions.

    ``update_distribution`` must submit ``version`` as the write precondition.
    A stale version fails with kind CONCURRENT_MODIFICATION; an alias that
    another distribution (or writer) already holds fails with kind
    ALIAS_ALREADY_EXISTS.
    """

    def get_distribution(self, distribution_id: str) -> Result[Distribution]: ...

    def create_distribution(self, config: dict[str, Any]) -> Result[Distribution]: ...

    def update_distribution(
        self,
        distribution_id: str,
        config: dict[str, Any],
        version: VersionToken,
    ) -> Result[Distribution]: ...

    def delete_distribution(self, distribution_id: str) -> Result[str]: ...


@runtime_checkable
class KeyMaterialStore(Protocol):
    """
    Port: persist certificate key material under a unique name.

    Upload failures are classified as MALFORMED_CERTIFICATE or
    CERTIFICATE_ALREADY_EXISTS where the store reports them as such.
    """

    def upload_key_material(
        self,
        name: str,
        certificate_body: str,
        private_key: str,
        certificate_chain: str | None,
    ) -> Result[StoredKeyMaterial]: ...

    def delete_key_material(self, name: str) -> Result[str]: ...


@runtime_checkable
class ManagedCertificateAuthority(Protocol):
    """Port: request and manage automatically-validated certificates."""

    def request_certificate(
        self,
        domain_name: str,
        validation_domain: str,
        alternate_names: list[str],
        idempotency_token: str,
    ) -> Result[str]: ...

    def describe_certificate(self, arn: str) -> Result[ManagedCertificate]: ...

    def delete_certificate(self, arn: str) -> Result[str]: ...

    def resend_validation_email(self, arn: str, domain: str, validation_domain: str) -> Result[str]: ...

    def list_certificates(self) -> Result[list[str]]:
        """Return the ARNs of every certificate the authority holds for this account."""
        ...


@runtime_checkable
class CertificateParser(Protocol):
    """Port: extract names and validity from a PEM certificate body."""

    def parse(self, certificate_body: str) -> Result[ParsedCertificate]: ...

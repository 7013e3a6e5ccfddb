"""
Certificate lifecycle — upload, provision a dedicated distribution, delete.

Upload is a sequence of named steps. Each step either moves the certificate to
its next state or stops on the failure track:

  parse            → PARSED            (no remote call; bad PEM fails here)
  name             → NAMED             (stored name derived once, never recomputed)
  store key        → KEY_STORED        (key material uploaded under the stored name)
  provision / skip → DISTRIBUTION_PROVISIONING | SKIPPED
  done             → ACTIVE

Nothing is rolled back. When provisioning fails after the key material was
stored, the failure carries the KEY_STORED certificate in
``details["certificate"]`` and ``provision_distribution`` resumes from there.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

import structlog
from railway import ErrorCode, FailureDescription
from railway.result import Result

from cdn_domains.config import CloudFrontSettings
from cdn_domains.distribution_config import build_dedicated_distribution_config
from cdn_domains.domain.errors import (
    FailureKind,
    certificate_already_exists,
    invalid_hostname,
    is_not_found,
    malformed_certificate,
)
from cdn_domains.domain.models import (
    Certificate,
    CertificateState,
    CertificateUpload,
    Distribution,
    DistributionRef,
    ParsedCertificate,
)
from cdn_domains.domain.ports import (
    CertificateParser,
    DistributionClient,
    KeyMaterialStore,
    ManagedCertificateAuthority,
)

log = structlog.get_logger()

WILDCARD_PREFIX = "*."
# The key-material store does not accept '*' in names.
WILDCARD_SENTINEL = "@."
ROTATION_SUFFIX_FORMAT = "%Y%m%d%H%M%S"
IDEMPOTENCY_TOKEN_LENGTH = 31


def canonical_name(common_name: str) -> str:
    """Lower-cased common name with a leading ``*.`` rewritten to ``@.``."""
    name = common_name.strip().lower()
    if name.startswith(WILDCARD_PREFIX):
        return WILDCARD_SENTINEL + name[len(WILDCARD_PREFIX):]
    return name


def derive_stored_name(common_name: str, rotated_at: datetime | None = None) -> str:
    """
    Name the key material is stored under.

    During a rotation a ``-<YYYYmmddHHMMSS>`` suffix keeps the new certificate
    distinct from the one still serving traffic.
    """
    base = canonical_name(common_name)
    if rotated_at is None:
        return base
    return f"{base}-{rotated_at.strftime(ROTATION_SUFFIX_FORMAT)}"


def idempotency_token(apex_domain: str) -> str:
    """Deterministic request token so repeated requests for one domain are deduplicated."""
    return hashlib.sha1(apex_domain.encode("utf-8")).hexdigest()[:IDEMPOTENCY_TOKEN_LENGTH]


def _distribution_ref(distribution: Distribution) -> DistributionRef:
    return DistributionRef(
        id=distribution.id,
        status=distribution.status,
        domain_name=distribution.domain_name,
    )


def _with_common_name(error: FailureDescription, certificate: Certificate) -> FailureDescription:
    if error.is_kind(FailureKind.CERTIFICATE_ALREADY_EXISTS):
        return (
            certificate_already_exists(certificate.stored_name, error.exception, certificate.common_name)
            .error()
            .with_details(**{k: v for k, v in error.details.items() if k not in ("common_name", "stored_name")})
        )
    return error.with_details(common_name=certificate.common_name)


class CertificateLifecycleCoordinator:
    """Drives customer certificates and managed certificates through their lifecycle."""

    def __init__(
        self,
        parser: CertificateParser,
        key_store: KeyMaterialStore,
        distributions: DistributionClient,
        authority: ManagedCertificateAuthority,
        cloudfront: CloudFrontSettings,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._parser = parser
        self._key_store = key_store
        self._distributions = distributions
        self._authority = authority
        self._cloudfront = cloudfront
        self._clock = clock

    # ─────────────────────── upload ───────────────────────

    def upload_certificate(self, upload: CertificateUpload) -> Result[Certificate]:
        """
        Parse, name and store a customer certificate, then provision its distribution.

        Failure kinds: MALFORMED_CERTIFICATE, CERTIFICATE_ALREADY_EXISTS,
        DISTRIBUTION_PROVISIONING_FAILED (with the KEY_STORED certificate in
        details). Unclassified store errors are returned as reported.
        """
        return (
            self._parse(upload)
            .map(lambda parsed: self._name(parsed, upload))
            .flat_map(lambda certificate: self._store_key_material(certificate, upload))
            .flat_map(lambda certificate: self._complete(certificate, upload))
        )

    def _parse(self, upload: CertificateUpload) -> Result[ParsedCertificate]:
        if not upload.private_key or not upload.private_key.strip():
            return malformed_certificate("Private key is required")
        return self._parser.parse(upload.certificate_body)

    def _name(self, parsed: ParsedCertificate, upload: CertificateUpload) -> Certificate:
        rotated_at = self._clock() if upload.rotation else None
        stored_name = derive_stored_name(parsed.common_name, rotated_at)
        log.info(
            "certificates.named",
            common_name=parsed.common_name,
            stored_name=stored_name,
            rotation=upload.rotation,
        )
        return Certificate(
            common_name=parsed.common_name,
            stored_name=stored_name,
            state=CertificateState.NAMED,
            alternate_names=parsed.alternate_names,
        )

    def _store_key_material(self, certificate: Certificate, upload: CertificateUpload) -> Result[Certificate]:
        return (
            self._key_store.upload_key_material(
                certificate.stored_name,
                upload.certificate_body,
                upload.private_key,
                upload.certificate_chain,
            )
            .map_failure(lambda err: _with_common_name(err, certificate))
            .map(lambda stored: replace(certificate, state=CertificateState.KEY_STORED, key_material=stored))
            .peek(self._log_key_stored)
        )

    @staticmethod
    def _log_key_stored(certificate: Certificate) -> None:
        stored = certificate.key_material
        log.info(
            "certificates.key_stored",
            stored_name=certificate.stored_name,
            key_material_id=stored.key_material_id if stored else None,
            expires_at=stored.expires_at.isoformat() if stored and stored.expires_at else None,
        )

    def _complete(self, certificate: Certificate, upload: CertificateUpload) -> Result[Certificate]:
        if not upload.provision_distribution:
            skipped = replace(certificate, state=CertificateState.SKIPPED)
            log.info("certificates.provisioning_skipped", stored_name=skipped.stored_name)
            return Result.success(replace(skipped, state=CertificateState.ACTIVE))
        return self.provision_distribution(certificate)

    # ─────────────────────── provision ───────────────────────

    def provision_distribution(self, certificate: Certificate) -> Result[Certificate]:
        """
        Create the dedicated distribution for a certificate whose key material is stored.

        Idempotent for a certificate that already has a bound distribution.
        """
        if certificate.distribution is not None:
            return Result.success(certificate)
        if certificate.key_material is None:
            return Result.failure(
                ErrorCode.VALIDATION_ERROR,
                f"Certificate {certificate.stored_name} has no stored key material",
                stored_name=certificate.stored_name,
            )

        provisioning = replace(certificate, state=CertificateState.DISTRIBUTION_PROVISIONING)
        config = build_dedicated_distribution_config(
            self._cloudfront,
            stored_name=provisioning.stored_name,
            key_material_id=certificate.key_material.key_material_id,
        )
        log.info("certificates.provisioning_distribution", stored_name=provisioning.stored_name)

        return (
            self._distributions.create_distribution(config)
            .map(
                lambda distribution: replace(
                    provisioning,
                    state=CertificateState.ACTIVE,
                    distribution=_distribution_ref(distribution),
                )
            )
            .peek(
                lambda active: log.info(
                    "certificates.active",
                    stored_name=active.stored_name,
                    distribution_id=active.distribution_id,
                    domain_name=active.distribution.domain_name if active.distribution else None,
                )
            )
            .map_failure(lambda err: self._provisioning_failed(certificate, err))
        )

    def _provisioning_failed(self, certificate: Certificate, cause: FailureDescription) -> FailureDescription:
        key_stored = replace(certificate, state=CertificateState.KEY_STORED)
        log.error(
            "certificates.provisioning_failed",
            stored_name=key_stored.stored_name,
            error_code=cause.code.value,
            message=cause.message,
        )
        return replace(
            cause,
            kind=FailureKind.DISTRIBUTION_PROVISIONING_FAILED,
            message=f"Distribution provisioning for {key_stored.stored_name} failed: {cause.message}",
        ).with_details(
            certificate=key_stored,
            stored_name=key_stored.stored_name,
            common_name=key_stored.common_name,
            cause_kind=cause.kind.name if cause.kind is not None else None,
        )

    # ─────────────────────── delete ───────────────────────

    def delete_certificate(self, certificate: Certificate) -> Result[Certificate]:
        """
        Delete the bound distribution first, then the key material.

        The key-material store refuses to delete material a live distribution
        still references, so the order is fixed. Either resource being already
        gone counts as deleted.
        """
        return self._delete_bound_distribution(certificate).flat_map(self._delete_key_material)

    def _delete_bound_distribution(self, certificate: Certificate) -> Result[Certificate]:
        distribution_id = certificate.distribution_id
        if distribution_id is None:
            return Result.success(certificate)
        return (
            self._distributions.delete_distribution(distribution_id)
            .recover_if(is_not_found, lambda _: distribution_id)
            .map(lambda _: replace(certificate, distribution=None))
            .peek(
                lambda _: log.info(
                    "certificates.distribution_deleted",
                    stored_name=certificate.stored_name,
                    distribution_id=distribution_id,
                )
            )
            .map_failure(lambda err: err.with_details(stored_name=certificate.stored_name))
        )

    def _delete_key_material(self, certificate: Certificate) -> Result[Certificate]:
        return (
            self._key_store.delete_key_material(certificate.stored_name)
            .recover_if(is_not_found, lambda _: certificate.stored_name)
            .map(lambda _: replace(certificate, key_material=None, state=CertificateState.DELETED))
            .peek(lambda _: log.info("certificates.deleted", stored_name=certificate.stored_name))
        )

    # ─────────────────────── managed certificates ───────────────────────

    def request_managed_certificate(self, apex_domain: str) -> Result[str]:
        """
        Request a wildcard certificate for ``apex_domain`` with the apex as alternate name.

        Returns the certificate ARN. Repeated requests reuse the same
        idempotency token and are deduplicated by the authority.
        """
        apex = apex_domain.strip().lower().rstrip(".")
        if not apex or "*" in apex:
            return invalid_hostname(apex_domain)

        return self._authority.request_certificate(
            domain_name=f"{WILDCARD_PREFIX}{apex}",
            validation_domain=apex,
            alternate_names=[apex],
            idempotency_token=idempotency_token(apex),
        ).peek(lambda arn: log.info("certificates.managed_requested", apex_domain=apex, arn=arn))

    def get_certificate_status(self, arn: str) -> Result[str]:
        return self._authority.describe_certificate(arn).map(lambda managed: managed.status)

    def resend_validation_email(self, domain: str, arn: str) -> Result[str]:
        return self._authority.resend_validation_email(arn, domain, domain)

    def delete_managed_certificate(self, arn: str) -> Result[str]:
        return self._authority.delete_certificate(arn).recover_if(is_not_found, lambda _: arn)

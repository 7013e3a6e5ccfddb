"""
ACM adapter — implements the ManagedCertificateAuthority port with boto3.

Certificates used by CloudFront must live in us-east-1; the region is chosen
when the boto3 client is built (``certificates.certificate_manager_region``).
Validation is by e-mail to the apex domain's administrative addresses.
"""

from __future__ import annotations

from typing import Any

import structlog
from railway.result import Result

from cdn_domains.adapters.aws_errors import aws_call
from cdn_domains.domain.errors import resource_not_found
from cdn_domains.domain.models import ManagedCertificate

log = structlog.get_logger()


def parse_certificate_detail(response: dict[str, Any]) -> ManagedCertificate:
    detail = response["Certificate"]
    return ManagedCertificate(
        arn=detail["CertificateArn"],
        domain_name=detail.get("DomainName", ""),
        status=detail.get("Status", "UNKNOWN"),
        in_use_by=tuple(detail.get("InUseBy", []) or []),
        created_at=detail.get("CreatedAt"),
        issued_at=detail.get("IssuedAt"),
        not_after=detail.get("NotAfter"),
    )


class AcmCertificateAuthority:
    """Implements the ManagedCertificateAuthority port over a boto3 ``acm`` client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def request_certificate(
        self,
        domain_name: str,
        validation_domain: str,
        alternate_names: list[str],
        idempotency_token: str,
    ) -> Result[str]:
        return aws_call(
            lambda: self._client.request_certificate(
                DomainName=domain_name,
                ValidationMethod="EMAIL",
                SubjectAlternativeNames=alternate_names,
                DomainValidationOptions=[
                    {"DomainName": domain_name, "ValidationDomain": validation_domain},
                ],
                IdempotencyToken=idempotency_token,
            )["CertificateArn"],
            "acm.request_certificate",
        )

    def describe_certificate(self, arn: str) -> Result[ManagedCertificate]:
        return aws_call(
            lambda: parse_certificate_detail(self._client.describe_certificate(CertificateArn=arn)),
            "acm.describe_certificate",
            lambda code, e: self._not_found(code, e, arn),
        )

    def delete_certificate(self, arn: str) -> Result[str]:
        return aws_call(
            lambda: self._client.delete_certificate(CertificateArn=arn),
            "acm.delete_certificate",
            lambda code, e: self._not_found(code, e, arn),
        ).map(lambda _: arn)

    def resend_validation_email(self, arn: str, domain: str, validation_domain: str) -> Result[str]:
        return (
            aws_call(
                lambda: self._client.resend_validation_email(
                    CertificateArn=arn,
                    Domain=domain,
                    ValidationDomain=validation_domain,
                ),
                "acm.resend_validation_email",
                lambda code, e: self._not_found(code, e, arn),
            )
            .map(lambda _: arn)
            .peek(lambda _: log.info("acm.validation_email_resent", arn=arn, domain=domain))
        )

    def list_certificates(self) -> Result[list[str]]:
        return aws_call(self._collect_arns, "acm.list_certificates")

    def _collect_arns(self) -> list[str]:
        paginator = self._client.get_paginator("list_certificates")
        return [
            summary["CertificateArn"]
            for page in paginator.paginate()
            for summary in page.get("CertificateSummaryList", [])
        ]

    @staticmethod
    def _not_found(code: str, error: Exception, arn: str) -> Result[Any] | None:
        if code == "ResourceNotFoundException":
            return resource_not_found("Certificate", arn, error)
        return None

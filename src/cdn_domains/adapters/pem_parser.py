"""
PEM certificate parser — implements the CertificateParser port with cryptography.

Extracts the subject common name, the DNS subject-alternative names and the
validity window. Nothing about the certificate is verified here (chain, key
match); the key-material store rejects what it cannot serve.
"""

from __future__ import annotations

import structlog
from cryptography import x509
from cryptography.x509.oid import NameOID
from railway.result import Result

from cdn_domains.domain.errors import malformed_certificate
from cdn_domains.domain.models import ParsedCertificate

log = structlog.get_logger()


def _common_name(cert: x509.Certificate) -> str | None:
    attributes = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attributes:
        return None
    value = attributes[0].value
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    return value.strip().lower() or None


def _alternate_names(cert: x509.Certificate) -> tuple[str, ...]:
    try:
        extension = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return ()
    return tuple(name.lower() for name in extension.value.get_values_for_type(x509.DNSName))


class PemCertificateParser:
    """Implements the CertificateParser port."""

    def parse(self, certificate_body: str) -> Result[ParsedCertificate]:
        if not certificate_body or not certificate_body.strip():
            return malformed_certificate("Certificate body is empty")

        return self._load(certificate_body).flat_map(self._to_parsed)

    @staticmethod
    def _load(certificate_body: str) -> Result[x509.Certificate]:
        try:
            return Result.success(x509.load_pem_x509_certificate(certificate_body.strip().encode("utf-8")))
        except ValueError as e:
            return malformed_certificate(f"Certificate body is not a valid PEM certificate: {e}", e)

    @staticmethod
    def _to_parsed(cert: x509.Certificate) -> Result[ParsedCertificate]:
        common_name = _common_name(cert)
        if common_name is None:
            return malformed_certificate("Certificate subject has no common name")
        parsed = ParsedCertificate(
            common_name=common_name,
            alternate_names=_alternate_names(cert),
            not_before=cert.not_valid_before_utc,
            not_after=cert.not_valid_after_utc,
        )
        log.debug(
            "pem_parser.parsed",
            common_name=parsed.common_name,
            alternate_names=len(parsed.alternate_names),
            not_after=parsed.not_after.isoformat() if parsed.not_after else None,
        )
        return Result.success(parsed)

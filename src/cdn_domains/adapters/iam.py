"""
IAM adapter — stores certificate key material as IAM server certificates.

CloudFront can only serve an IAM server certificate uploaded under a path
beginning with ``/cloudfront/``; the path comes from CertificateSettings.
IAM does not accept ``*`` in names, which is why stored names use ``@.``
for wildcard certificates.
"""

from __future__ import annotations

from typing import Any

import structlog
from botocore.exceptions import ClientError
from railway.result import Result

from cdn_domains.adapters.aws_errors import aws_call, client_error_message
from cdn_domains.domain.errors import (
    certificate_already_exists,
    malformed_certificate,
    resource_not_found,
)
from cdn_domains.domain.models import StoredKeyMaterial

log = structlog.get_logger()


def parse_server_certificate_metadata(name: str, response: dict[str, Any]) -> StoredKeyMaterial:
    metadata = response["ServerCertificateMetadata"]
    return StoredKeyMaterial(
        name=metadata.get("ServerCertificateName", name),
        key_material_id=metadata["ServerCertificateId"],
        arn=metadata.get("Arn"),
        path=metadata.get("Path"),
        uploaded_at=metadata.get("UploadDate"),
        expires_at=metadata.get("Expiration"),
    )


class IamKeyMaterialStore:
    """Implements the KeyMaterialStore port over a boto3 ``iam`` client."""

    def __init__(self, client: Any, path: str = "/cloudfront/") -> None:
        self._client = client
        self._path = path

    def upload_key_material(
        self,
        name: str,
        certificate_body: str,
        private_key: str,
        certificate_chain: str | None,
    ) -> Result[StoredKeyMaterial]:
        params: dict[str, Any] = {
            "Path": self._path,
            "ServerCertificateName": name,
            "CertificateBody": certificate_body,
            "PrivateKey": private_key,
        }
        if certificate_chain:
            params["CertificateChain"] = certificate_chain

        return aws_call(
            lambda: parse_server_certificate_metadata(name, self._client.upload_server_certificate(**params)),
            "iam.upload_server_certificate",
            lambda code, e: self._classify_upload(code, e, name),
        ).peek(lambda stored: log.info("iam.key_material_uploaded", name=name, path=self._path))

    def delete_key_material(self, name: str) -> Result[str]:
        return aws_call(
            lambda: self._client.delete_server_certificate(ServerCertificateName=name),
            "iam.delete_server_certificate",
            lambda code, e: resource_not_found("Server certificate", name, e) if code == "NoSuchEntity" else None,
        ).map(lambda _: name)

    @staticmethod
    def _classify_upload(code: str, error: ClientError, name: str) -> Result[Any] | None:
        message = client_error_message(error)
        match code:
            case "MalformedCertificate" | "KeyPairMismatch":
                return malformed_certificate(message or f"IAM rejected certificate {name}", error, stored_name=name)
            case "EntityAlreadyExists" if "server certificate" in message.lower():
                return certificate_already_exists(name, error)
        return None

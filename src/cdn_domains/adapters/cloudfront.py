"""
CloudFront adapter — implements the DistributionClient port with boto3.

Every write is conditional: ``update_distribution`` and ``delete_distribution``
send the ETag read beforehand as ``IfMatch``. CloudFront answers a stale ETag
with PreconditionFailed, which becomes a CONCURRENT_MODIFICATION failure.

The boto3 client is injected so that retries and timeouts are configured in
one place (the composition root) and tests can pass a MagicMock.
"""

from __future__ import annotations

from typing import Any

import structlog
from botocore.exceptions import ClientError
from railway import ErrorCode
from railway.result import Result

from cdn_domains.adapters.aws_errors import aws_call, client_error_message
from cdn_domains.domain.errors import FailureKind, concurrent_modification, resource_not_found
from cdn_domains.domain.models import Distribution, DistributionStatus, VersionToken

log = structlog.get_logger()


def parse_distribution(response: dict[str, Any]) -> Distribution:
    """Build a Distribution from a get/create/update_distribution response."""
    body = response["Distribution"]
    config = body["DistributionConfig"]
    aliases = config.get("Aliases", {}).get("Items", []) or []
    return Distribution(
        id=body["Id"],
        version=VersionToken(response["ETag"]),
        status=DistributionStatus.parse(body.get("Status")),
        aliases=tuple(aliases),
        domain_name=body.get("DomainName"),
        enabled=bool(config.get("Enabled", True)),
        config=config,
    )


class CloudFrontDistributionClient:
    """Implements the DistributionClient port over a boto3 ``cloudfront`` client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def get_distribution(self, distribution_id: str) -> Result[Distribution]:
        return aws_call(
            lambda: parse_distribution(self._client.get_distribution(Id=distribution_id)),
            "cloudfront.get_distribution",
            lambda code, e: self._classify(code, e, distribution_id),
        )

    def create_distribution(self, config: dict[str, Any]) -> Result[Distribution]:
        return aws_call(
            lambda: parse_distribution(self._client.create_distribution(DistributionConfig=config)),
            "cloudfront.create_distribution",
            lambda code, e: self._classify(code, e, config.get("Comment", "")),
        ).peek(
            lambda distribution: log.info(
                "cloudfront.distribution_created",
                distribution_id=distribution.id,
                domain_name=distribution.domain_name,
            )
        )

    def update_distribution(
        self,
        distribution_id: str,
        config: dict[str, Any],
        version: VersionToken,
    ) -> Result[Distribution]:
        return aws_call(
            lambda: parse_distribution(
                self._client.update_distribution(
                    Id=distribution_id,
                    DistributionConfig=config,
                    IfMatch=version.value,
                )
            ),
            "cloudfront.update_distribution",
            lambda code, e: self._classify(code, e, distribution_id),
        )

    def delete_distribution(self, distribution_id: str) -> Result[str]:
        """
        Delete a disabled distribution. A distribution that no longer exists counts as deleted.

        CloudFront refuses to delete an enabled (or still deploying) distribution;
        that refusal is a CONFLICT_ERROR.
        """
        return (
            self.get_distribution(distribution_id)
            .flat_map(
                lambda distribution: aws_call(
                    lambda: self._client.delete_distribution(
                        Id=distribution.id,
                        IfMatch=distribution.version.value,
                    ),
                    "cloudfront.delete_distribution",
                    lambda code, e: self._classify(code, e, distribution_id),
                )
            )
            .map(lambda _: distribution_id)
            .recover_if(
                lambda err: err.code is ErrorCode.NOT_FOUND,
                lambda _: distribution_id,
            )
            .peek(lambda _: log.info("cloudfront.distribution_deleted", distribution_id=distribution_id))
        )

    @staticmethod
    def _classify(code: str, error: ClientError, distribution_id: str) -> Result[Any] | None:
        match code:
            case "NoSuchDistribution":
                return resource_not_found("Distribution", distribution_id, error)
            case "PreconditionFailed" | "InvalidIfMatchVersion":
                return concurrent_modification(distribution_id, error)
            case "CNAMEAlreadyExists":
                return Result.failure(
                    ErrorCode.CONFLICT_ERROR,
                    client_error_message(error) or "One or more aliases are already in use",
                    error,
                    kind=FailureKind.ALIAS_ALREADY_EXISTS,
                    distribution_id=distribution_id,
                )
            case "DistributionNotDisabled":
                return Result.failure(
                    ErrorCode.CONFLICT_ERROR,
                    f"Distribution {distribution_id} must be disabled and deployed before it can be deleted",
                    error,
                    distribution_id=distribution_id,
                )
        return None

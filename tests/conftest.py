"""
Shared test fixtures and helpers for the cdn-domains test suite.

Provides:
  - make_certificate_pem: self-signed PEM certificates generated on the fly
  - FakeDistributionClient: in-memory DistributionClient honouring version
    tokens, so optimistic-concurrency behaviour can be exercised without AWS
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat
from cryptography.x509.oid import NameOID
from railway import ErrorCode, FailureDescription
from railway.result import Failure, Result

from cdn_domains.config import CloudFrontSettings
from cdn_domains.domain.errors import FailureKind, concurrent_modification, resource_not_found
from cdn_domains.domain.models import Distribution, DistributionStatus, VersionToken

# ─────────────────────── Certificates ───────────────────────


def make_certificate_pem(
    common_name: str | None = "www.example.com",
    alternate_names: Iterable[str] = (),
    valid_days: int = 90,
) -> tuple[str, str]:
    """Return (certificate_pem, private_key_pem) for a self-signed EC certificate."""
    key = ec.generate_private_key(ec.SECP256R1())
    attributes = [x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Example Corp")]
    if common_name is not None:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    name = x509.Name(attributes)
    now = datetime.now(UTC)

    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=valid_days))
    )
    names = list(alternate_names)
    if names:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(n) for n in names]),
            critical=False,
        )
    cert = builder.sign(key, hashes.SHA256())

    cert_pem = cert.public_bytes(Encoding.PEM).decode("ascii")
    key_pem = key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()).decode("ascii")
    return cert_pem, key_pem


@pytest.fixture(scope="session")
def wildcard_certificate() -> tuple[str, str]:
    return make_certificate_pem("*.example.com", ["*.example.com", "example.com"])


@pytest.fixture(scope="session")
def www_certificate() -> tuple[str, str]:
    return make_certificate_pem("www.example.com", ["www.example.com"])


@pytest.fixture()
def cloudfront_settings() -> CloudFrontSettings:
    return CloudFrontSettings(
        distribution_ids=["D1", "D2", "D3"],
        max_aliases_per_distribution=3,
        origin_domain="app.example.net",
        custom_errors_domain="errors.s3.amazonaws.com",
        log_bucket="logs.s3.amazonaws.com",
    )


# ─────────────────────── In-memory CloudFront ───────────────────────


class FakeDistributionClient:
    """
    In-memory DistributionClient.

    Each distribution has an alias list, an enabled flag and an integer
    version. Updates are accepted only with the current version; an alias
    held by another distribution is rejected like CloudFront's
    CNAMEAlreadyExists. ``calls`` records every operation in order.
    """

    def __init__(self, distributions: dict[str, list[str]] | None = None) -> None:
        self._aliases: dict[str, list[str]] = {}
        self._versions: dict[str, int] = {}
        self._enabled: dict[str, bool] = {}
        self.calls: list[tuple[str, str]] = []
        self.created_configs: list[dict[str, Any]] = []
        self.failures: dict[tuple[str, str], FailureDescription] = {}
        self.before_update: Callable[[FakeDistributionClient, str], None] | None = None
        self._created = 0
        for distribution_id, aliases in (distributions or {}).items():
            self.add(distribution_id, aliases)

    # ── test helpers ──

    def add(self, distribution_id: str, aliases: Iterable[str] = (), enabled: bool = True) -> None:
        self._aliases[distribution_id] = list(aliases)
        self._versions[distribution_id] = 1
        self._enabled[distribution_id] = enabled

    def aliases_of(self, distribution_id: str) -> list[str]:
        return list(self._aliases[distribution_id])

    def exists(self, distribution_id: str) -> bool:
        return distribution_id in self._aliases

    def is_enabled(self, distribution_id: str) -> bool:
        return self._enabled[distribution_id]

    def concurrent_write(self, distribution_id: str, alias: str) -> None:
        """Simulate another writer committing between our read and our write."""
        self._aliases[distribution_id].append(alias)
        self._versions[distribution_id] += 1

    def fail_on(self, operation: str, distribution_id: str, error: FailureDescription) -> None:
        self.failures[(operation, distribution_id)] = error

    def count(self, operation: str, distribution_id: str | None = None) -> int:
        return sum(
            1 for op, target in self.calls if op == operation and (distribution_id is None or target == distribution_id)
        )

    # ── DistributionClient ──

    def _snapshot(self, distribution_id: str) -> Distribution:
        aliases = list(self._aliases[distribution_id])
        config = {
            "Comment": distribution_id,
            "Aliases": {"Quantity": len(aliases), "Items": aliases} if aliases else {"Quantity": 0},
            "Enabled": self._enabled[distribution_id],
        }
        return Distribution(
            id=distribution_id,
            version=VersionToken(f"E{self._versions[distribution_id]}"),
            status=DistributionStatus.DEPLOYED,
            aliases=tuple(aliases),
            domain_name=f"{distribution_id.lower()}.cloudfront.net",
            enabled=self._enabled[distribution_id],
            config=config,
        )

    def get_distribution(self, distribution_id: str) -> Result[Distribution]:
        self.calls.append(("get", distribution_id))
        if ("get", distribution_id) in self.failures:
            return Failure(self.failures[("get", distribution_id)])
        if distribution_id not in self._aliases:
            return resource_not_found("Distribution", distribution_id)
        return Result.success(self._snapshot(distribution_id))

    def create_distribution(self, config: dict[str, Any]) -> Result[Distribution]:
        self.calls.append(("create", config.get("Comment", "")))
        if ("create", config.get("Comment", "")) in self.failures:
            return Failure(self.failures[("create", config.get("Comment", ""))])
        self._created += 1
        distribution_id = f"EDEDICATED{self._created}"
        self.created_configs.append(config)
        self.add(distribution_id, config.get("Aliases", {}).get("Items", []), bool(config.get("Enabled", True)))
        return Result.success(self._snapshot(distribution_id))

    def update_distribution(
        self,
        distribution_id: str,
        config: dict[str, Any],
        version: VersionToken,
    ) -> Result[Distribution]:
        self.calls.append(("update", distribution_id))
        if self.before_update is not None:
            hook, self.before_update = self.before_update, None
            hook(self, distribution_id)
        if ("update", distribution_id) in self.failures:
            return Failure(self.failures[("update", distribution_id)])
        if distribution_id not in self._aliases:
            return resource_not_found("Distribution", distribution_id)
        if version.value != f"E{self._versions[distribution_id]}":
            return concurrent_modification(distribution_id)

        items = list(config.get("Aliases", {}).get("Items", []))
        for alias in items:
            for other, aliases in self._aliases.items():
                if other != distribution_id and alias in aliases:
                    return Result.failure(
                        ErrorCode.CONFLICT_ERROR,
                        f"CNAME {alias} already exists",
                        kind=FailureKind.ALIAS_ALREADY_EXISTS,
                        distribution_id=distribution_id,
                    )

        self._aliases[distribution_id] = items
        self._enabled[distribution_id] = bool(config.get("Enabled", True))
        self._versions[distribution_id] += 1
        return Result.success(self._snapshot(distribution_id))

    def delete_distribution(self, distribution_id: str) -> Result[str]:
        self.calls.append(("delete", distribution_id))
        if ("delete", distribution_id) in self.failures:
            return Failure(self.failures[("delete", distribution_id)])
        self._aliases.pop(distribution_id, None)
        self._versions.pop(distribution_id, None)
        self._enabled.pop(distribution_id, None)
        return Result.success(distribution_id)


@pytest.fixture()
def pool_client() -> FakeDistributionClient:
    """Three empty shared distributions D1, D2, D3."""
    return FakeDistributionClient({"D1": [], "D2": [], "D3": []})

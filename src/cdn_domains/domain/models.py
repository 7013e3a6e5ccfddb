"""
Domain models — immutable value objects for distributions, aliases and certificates.

All models are frozen dataclasses. Remote state (a distribution's alias list)
is never cached between operations: each operation reads a fresh Distribution,
derives a new configuration from it and submits that together with the
VersionToken captured at read time.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, StrEnum
from typing import Any


@dataclass(frozen=True, slots=True)
class VersionToken:
    """
    Opaque concurrency tag (CloudFront ETag) identifying the state read.

    Only ever handed back to the update call that follows the read.
    """

    value: str = field(repr=False)


class DistributionStatus(StrEnum):
    DEPLOYED = "Deployed"
    IN_PROGRESS = "InProgress"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, raw: str | None) -> DistributionStatus:
        for status in cls:
            if status.value == raw:
                return status
        return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class Distribution:
    """
    A CDN distribution as read from the remote service.

    ``config`` is the complete remote configuration; updates are always full
    replacements built from it, never partial patches.
    """

    id: str
    version: VersionToken
    status: DistributionStatus
    aliases: tuple[str, ...] = ()
    domain_name: str | None = None
    enabled: bool = True
    config: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def alias_count(self) -> int:
        return len(self.aliases)

    def has_alias(self, hostname: str) -> bool:
        return hostname in self.aliases

    def with_aliases(self, aliases: list[str] | tuple[str, ...]) -> dict[str, Any]:
        """Full configuration with the alias list replaced and its quantity recomputed."""
        updated = copy.deepcopy(self.config)
        items = list(aliases)
        updated["Aliases"] = {"Quantity": len(items), "Items": items}
        return updated

    def with_enabled(self, enabled: bool) -> dict[str, Any]:
        updated = copy.deepcopy(self.config)
        updated["Enabled"] = enabled
        return updated


@dataclass(frozen=True, slots=True)
class AliasBinding:
    """A hostname bound to a distribution."""

    hostname: str
    distribution_id: str


@dataclass(frozen=True, slots=True)
class UnregisterOutcome:
    """
    Result of an unregister call.

    ``removed`` is False (and ``distribution_id`` None) when the hostname was
    not bound anywhere that was searched.
    """

    hostname: str
    distribution_id: str | None = None
    removed: bool = False


# ─────────────────────── Certificates ───────────────────────


@dataclass(frozen=True, slots=True)
class ParsedCertificate:
    """Names and validity window extracted from a PEM certificate body."""

    common_name: str
    alternate_names: tuple[str, ...] = ()
    not_before: datetime | None = None
    not_after: datetime | None = None


@dataclass(frozen=True, slots=True)
class CertificateUpload:
    """
    Command: store a customer certificate and (optionally) provision a dedicated distribution.

    ``rotation`` appends a timestamp to the stored name so the new certificate
    can live next to the one it replaces until the cutover is done.
    """

    certificate_body: str
    private_key: str = field(repr=False)
    certificate_chain: str | None = field(default=None, repr=False)
    rotation: bool = False
    provision_distribution: bool = True


@dataclass(frozen=True, slots=True)
class StoredKeyMaterial:
    """What the key-material store reports after an upload."""

    name: str
    key_material_id: str
    arn: str | None = None
    path: str | None = None
    uploaded_at: datetime | None = None
    expires_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class DistributionRef:
    id: str
    status: DistributionStatus
    domain_name: str | None = None


class CertificateState(StrEnum):
    PARSED = "Parsed"
    NAMED = "Named"
    KEY_STORED = "KeyStored"
    DISTRIBUTION_PROVISIONING = "DistributionProvisioning"
    SKIPPED = "Skipped"
    ACTIVE = "Active"
    DELETED = "Deleted"


@dataclass(frozen=True, slots=True)
class Certificate:
    """
    A customer certificate moving through the upload lifecycle.

    ``stored_name`` is assigned once, when the certificate is named, and every
    later transition copies it unchanged.
    """

    common_name: str
    stored_name: str
    state: CertificateState
    alternate_names: tuple[str, ...] = ()
    key_material: StoredKeyMaterial | None = None
    distribution: DistributionRef | None = None

    @property
    def distribution_id(self) -> str | None:
        return self.distribution.id if self.distribution is not None else None


@dataclass(frozen=True, slots=True)
class ManagedCertificate:
    """A certificate issued by the managed certificate authority (ACM)."""

    arn: str
    domain_name: str
    status: str
    in_use_by: tuple[str, ...] = ()
    created_at: datetime | None = None
    issued_at: datetime | None = None
    not_after: datetime | None = None

    @property
    def in_use(self) -> bool:
        return bool(self.in_use_by)


# ─────────────────────── Transfer ───────────────────────


class TransferStep(Enum):
    UNREGISTERED_FROM_SOURCE = "unregistered_from_source"
    REGISTERED_ON_TARGET = "registered_on_target"


@dataclass(frozen=True, slots=True)
class TransferOutcome:
    hostname: str
    source_id: str
    target_id: str
    completed_steps: tuple[TransferStep, ...] = ()

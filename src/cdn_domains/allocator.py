"""
Alias allocator — binds hostnames to capacity-limited shared distributions.

Every mutation follows the same read-version-then-conditionally-write protocol:

  get_distribution(id)            → Distribution + VersionToken (fresh read)
    → check preconditions         → capacity headroom, duplicate hostname
      → with_aliases(new list)    → full replacement config
        → update_distribution(id, config, version)

The remote service rejects the write when the version is stale. Nothing here
retries: a conflict is returned to the caller, who decides whether to run the
whole read-modify-write again. No lock is held and no distribution state is
kept between calls, so any number of allocators may run concurrently.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from railway.result import Result

from cdn_domains.domain.errors import (
    FailureKind,
    alias_already_exists,
    invalid_distribution,
    invalid_hostname,
    is_not_found,
    no_capacity_available,
)
from cdn_domains.domain.models import AliasBinding, Distribution, UnregisterOutcome
from cdn_domains.domain.ports import DistributionClient
from cdn_domains.finder import find_distribution

log = structlog.get_logger()


def normalize_hostname(hostname: str) -> str:
    return hostname.strip().lower().rstrip(".")


class AliasAllocator:
    """
    Register and unregister hostnames on the shared distribution pool.

    ``pool`` is the ordered list of shared distribution ids; ``capacity`` the
    maximum number of aliases one distribution may carry.
    """

    def __init__(
        self,
        client: DistributionClient,
        pool: Sequence[str],
        capacity: int,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._client = client
        self._pool = tuple(pool)
        self._capacity = capacity

    @property
    def pool(self) -> tuple[str, ...]:
        return self._pool

    @property
    def capacity(self) -> int:
        return self._capacity

    def has_headroom(self, distribution: Distribution) -> bool:
        # Strict: a distribution at exactly capacity is never selected.
        return distribution.alias_count < self._capacity

    # ─────────────────────── register ───────────────────────

    def register(self, hostname: str, target_distribution_id: str | None = None) -> Result[AliasBinding]:
        """
        Bind ``hostname`` to the target distribution or to the first pool member with headroom.

        Failure kinds: INVALID_HOSTNAME, INVALID_DISTRIBUTION, NO_CAPACITY_AVAILABLE,
        ALIAS_ALREADY_EXISTS, CONCURRENT_MODIFICATION.
        """
        name = normalize_hostname(hostname)
        if not name:
            return invalid_hostname(hostname)

        return (
            self._locate_for_register(name, target_distribution_id)
            .flat_map(lambda distribution: self._reject_duplicate(name, distribution))
            .ensure(
                self.has_headroom,
                lambda d: no_capacity_available(name, self._capacity, d.id).error(),
            )
            .flat_map(lambda distribution: self._append_alias(name, distribution))
        )

    def _locate_for_register(self, hostname: str, target_distribution_id: str | None) -> Result[Distribution]:
        if target_distribution_id is None:
            return find_distribution(self._client, self._pool, self.has_headroom).map_failure(
                lambda err: (
                    no_capacity_available(hostname, self._capacity).error()
                    if err.is_kind(FailureKind.NO_MATCHING_DISTRIBUTION)
                    else err
                )
            )

        return self._client.get_distribution(target_distribution_id).map_failure(
            lambda err: invalid_distribution(target_distribution_id, err).error() if is_not_found(err) else err
        )

    def _reject_duplicate(self, hostname: str, distribution: Distribution) -> Result[Distribution]:
        if distribution.has_alias(hostname):
            log.info("allocator.duplicate_alias", hostname=hostname, distribution_id=distribution.id)
            return alias_already_exists(hostname, distribution.id)
        return Result.success(distribution)

    def _append_alias(self, hostname: str, distribution: Distribution) -> Result[AliasBinding]:
        config = distribution.with_aliases([*distribution.aliases, hostname])
        return (
            self._client.update_distribution(distribution.id, config, distribution.version)
            .map(lambda updated: AliasBinding(hostname=hostname, distribution_id=updated.id))
            .map_failure(
                lambda err: (
                    err.with_details(hostname=hostname)
                    if err.is_kind(FailureKind.ALIAS_ALREADY_EXISTS)
                    else err
                )
            )
            .peek(
                lambda binding: log.info(
                    "allocator.registered",
                    hostname=hostname,
                    distribution_id=binding.distribution_id,
                    alias_count=distribution.alias_count + 1,
                    capacity=self._capacity,
                )
            )
        )

    # ─────────────────────── unregister ───────────────────────

    def unregister(self, hostname: str, distribution_id: str | None = None) -> Result[UnregisterOutcome]:
        """
        Remove ``hostname`` from the given distribution, or from whichever pool member lists it.

        Unregistering a hostname that is not bound is a successful no-op
        (``removed=False``) and issues no write.
        """
        name = normalize_hostname(hostname)
        if not name:
            return invalid_hostname(hostname)

        candidates = (distribution_id,) if distribution_id is not None else self._pool
        return (
            find_distribution(self._client, candidates, lambda d: d.has_alias(name))
            .flat_map(lambda distribution: self._remove_alias(name, distribution))
            .recover_if(
                lambda err: err.is_kind(FailureKind.NO_MATCHING_DISTRIBUTION),
                lambda _: self._not_bound(name, candidates),
            )
        )

    def _remove_alias(self, hostname: str, distribution: Distribution) -> Result[UnregisterOutcome]:
        remaining = [alias for alias in distribution.aliases if alias != hostname]
        config = distribution.with_aliases(remaining)
        return (
            self._client.update_distribution(distribution.id, config, distribution.version)
            .map(lambda updated: UnregisterOutcome(hostname=hostname, distribution_id=updated.id, removed=True))
            .peek(
                lambda _: log.info(
                    "allocator.unregistered",
                    hostname=hostname,
                    distribution_id=distribution.id,
                    alias_count=len(remaining),
                )
            )
        )

    def _not_bound(self, hostname: str, candidates: Sequence[str]) -> UnregisterOutcome:
        log.info("allocator.unregister_noop", hostname=hostname, searched=len(candidates))
        return UnregisterOutcome(hostname=hostname)

    # ─────────────────────── lookup ───────────────────────

    def find_binding(self, hostname: str) -> Result[AliasBinding]:
        """Locate the pool member currently listing ``hostname``."""
        name = normalize_hostname(hostname)
        if not name:
            return invalid_hostname(hostname)
        return find_distribution(self._client, self._pool, lambda d: d.has_alias(name)).map(
            lambda distribution: AliasBinding(hostname=name, distribution_id=distribution.id)
        )

    def is_registered(self, hostname: str) -> Result[bool]:
        """True when any shared pool member lists ``hostname``."""
        return self.find_binding(hostname).map(lambda _: True).recover_if(
            lambda err: err.is_kind(FailureKind.NO_MATCHING_DISTRIBUTION),
            lambda _: False,
        )

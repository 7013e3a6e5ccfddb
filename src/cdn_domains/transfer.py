"""
Domain transfer — move a hostname from one distribution to another.

Two independently committing steps, no lock held between them and no
rollback:

  1. UNREGISTERED_FROM_SOURCE   unregister(hostname, source)   (no-op if not bound there)
  2. REGISTERED_ON_TARGET       register(hostname, target)

If step 2 fails the hostname is bound nowhere until the caller re-runs the
transfer; the failure says so in its details (``completed_steps``). Re-running
is safe: step 1 is then a no-op, and a hostname already bound to the target
counts as registered there.
"""

from __future__ import annotations

from dataclasses import replace

import structlog
from railway import FailureDescription
from railway.result import Result

from cdn_domains.allocator import AliasAllocator, normalize_hostname
from cdn_domains.domain.errors import FailureKind, invalid_hostname
from cdn_domains.domain.models import TransferOutcome, TransferStep

log = structlog.get_logger()


def transfer_domain(
    allocator: AliasAllocator,
    hostname: str,
    source_distribution_id: str,
    target_distribution_id: str,
) -> Result[TransferOutcome]:
    """
    Unregister ``hostname`` from the source, then register it on the target.

    Source equal to target is a successful no-op without any remote call.
    """
    name = normalize_hostname(hostname)
    if not name:
        return invalid_hostname(hostname)

    outcome = TransferOutcome(
        hostname=name,
        source_id=source_distribution_id,
        target_id=target_distribution_id,
    )
    if source_distribution_id == target_distribution_id:
        log.info("transfer.noop", hostname=name, distribution_id=source_distribution_id)
        return Result.success(outcome)

    log.info(
        "transfer.started",
        hostname=name,
        source_id=source_distribution_id,
        target_id=target_distribution_id,
    )
    return (
        allocator.unregister(name, source_distribution_id)
        .flat_map(
            lambda unregistered: _register_on_target(
                allocator,
                _completed(outcome, TransferStep.UNREGISTERED_FROM_SOURCE),
                unregistered.removed,
            )
        )
        .peek(
            lambda done: log.info(
                "transfer.completed",
                hostname=done.hostname,
                source_id=done.source_id,
                target_id=done.target_id,
            )
        )
    )


def _completed(outcome: TransferOutcome, step: TransferStep) -> TransferOutcome:
    return replace(outcome, completed_steps=(*outcome.completed_steps, step))


def _already_on_target(error: FailureDescription, outcome: TransferOutcome) -> bool:
    """True when registration was rejected because the hostname is already bound to the target."""
    return error.is_kind(FailureKind.ALIAS_ALREADY_EXISTS) and error.details.get("bound_to") == outcome.target_id


def _register_on_target(
    allocator: AliasAllocator,
    outcome: TransferOutcome,
    removed_from_source: bool,
) -> Result[TransferOutcome]:
    return (
        allocator.register(outcome.hostname, outcome.target_id)
        .map(lambda _: outcome)
        .recover_if(
            lambda err: _already_on_target(err, outcome),
            lambda _: _log_already_on_target(outcome),
        )
        .map(lambda registered: _completed(registered, TransferStep.REGISTERED_ON_TARGET))
        .map_failure(lambda err: _incomplete(outcome, err, removed_from_source))
    )


def _log_already_on_target(outcome: TransferOutcome) -> TransferOutcome:
    log.info("transfer.already_on_target", hostname=outcome.hostname, target_id=outcome.target_id)
    return outcome


def _incomplete(
    outcome: TransferOutcome,
    cause: FailureDescription,
    removed_from_source: bool,
) -> FailureDescription:
    log.error(
        "transfer.incomplete",
        hostname=outcome.hostname,
        source_id=outcome.source_id,
        target_id=outcome.target_id,
        completed_steps=[step.value for step in outcome.completed_steps],
        removed_from_source=removed_from_source,
        error_code=cause.code.value,
        message=cause.message,
    )
    source_state = (
        f"was removed from {outcome.source_id}"
        if removed_from_source
        else f"was not bound to {outcome.source_id}"
    )
    return replace(
        cause,
        kind=FailureKind.TRANSFER_INCOMPLETE,
        message=(
            f"{outcome.hostname} {source_state} and could not be "
            f"registered on {outcome.target_id}: {cause.message}"
        ),
    ).with_details(
        hostname=outcome.hostname,
        source_id=outcome.source_id,
        target_id=outcome.target_id,
        completed_steps=[step.value for step in outcome.completed_steps],
        removed_from_source=removed_from_source,
        cause_kind=cause.kind.name if cause.kind is not None else None,
    )

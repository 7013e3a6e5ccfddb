"""
Distribution finder — first-fit sequential scan over a pool of distribution ids.

Candidates are fetched one at a time, in the order given, and the first one
satisfying the predicate wins. Earlier pool entries are therefore always
preferred: load concentrates at the front of the pool. Fetches are never
issued in parallel so the choice stays deterministic.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

import structlog
from railway.result import Failure, Result, Success

from cdn_domains.domain.errors import is_not_found, no_matching_distribution
from cdn_domains.domain.models import Distribution
from cdn_domains.domain.ports import DistributionClient

log = structlog.get_logger()

type DistributionPredicate = Callable[[Distribution], bool]


def find_distribution(
    client: DistributionClient,
    candidate_ids: Iterable[str],
    predicate: DistributionPredicate,
) -> Result[Distribution]:
    """
    Return the first candidate distribution matching ``predicate``.

    A candidate that no longer exists is skipped. Any other fetch failure
    aborts the scan and is returned unchanged. When nothing matches the
    failure kind is NO_MATCHING_DISTRIBUTION.
    """
    scanned = 0
    for distribution_id in candidate_ids:
        scanned += 1
        match client.get_distribution(distribution_id):
            case Success(distribution) if predicate(distribution):
                log.debug("finder.matched", distribution_id=distribution_id, scanned=scanned)
                return Success(distribution)
            case Success(_):
                continue
            case Failure(err) if is_not_found(err):
                log.warning("finder.candidate_missing", distribution_id=distribution_id)
                continue
            case Failure(err):
                log.error(
                    "finder.scan_aborted",
                    distribution_id=distribution_id,
                    error_code=err.code.value,
                    message=err.message,
                )
                return Failure(err)

    return no_matching_distribution(scanned)

"""
Application entry point — wires dependencies and starts the janitor scheduler.

Composition root: creates the boto3 clients and concrete adapters, injects
them into the allocator, the certificate coordinator and the DomainManager.

This is the ONLY place where concrete classes are instantiated.
Everything else depends on Protocol interfaces.

Responsibilities:
  1. Configure structlog
  2. Load and validate configuration from environment
  3. Create boto3 clients (single attempt, no transport retries by default)
  4. Create adapters and wire the DomainManager
  5. Create and start the janitor scheduler
"""

from __future__ import annotations

import logging
import sys
from datetime import timedelta
from typing import Any

import boto3
import structlog
from botocore.config import Config

from cdn_domains import __version__
from cdn_domains.adapters.acm import AcmCertificateAuthority
from cdn_domains.adapters.cloudfront import CloudFrontDistributionClient
from cdn_domains.adapters.iam import IamKeyMaterialStore
from cdn_domains.adapters.pem_parser import PemCertificateParser
from cdn_domains.allocator import AliasAllocator
from cdn_domains.certificates import CertificateLifecycleCoordinator
from cdn_domains.config import AppSettings
from cdn_domains.manager import DomainManager
from cdn_domains.scheduler import create_scheduler

# CloudFront only serves ACM certificates issued in this region.
CLOUDFRONT_CERTIFICATE_REGION = "us-east-1"


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for structured logging.

    Colored, human-readable console output with ISO timestamps.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _client_config(settings: AppSettings) -> Config:
    return Config(retries={"max_attempts": settings.aws_max_attempts, "mode": "standard"})


def _create_clients(settings: AppSettings, session: Any = None) -> tuple[Any, Any, Any]:
    """boto3 ``cloudfront``, ``iam`` and ``acm`` clients."""
    session = session or boto3.session.Session(region_name=settings.aws_region)
    config = _client_config(settings)
    acm_region = settings.certificates.certificate_manager_region or CLOUDFRONT_CERTIFICATE_REGION
    return (
        session.client("cloudfront", config=config),
        session.client("iam", config=config),
        session.client("acm", region_name=acm_region, config=config),
    )


def create_domain_manager(settings: AppSettings, session: Any = None) -> DomainManager:
    """Build a fully wired DomainManager from application settings."""
    cloudfront_client, iam_client, acm_client = _create_clients(settings, session)

    distributions = CloudFrontDistributionClient(cloudfront_client)
    key_store = IamKeyMaterialStore(iam_client, path=settings.certificates.key_material_path)
    authority = AcmCertificateAuthority(acm_client)

    allocator = AliasAllocator(
        distributions,
        pool=settings.cloudfront.distribution_ids,
        capacity=settings.cloudfront.max_aliases_per_distribution,
    )
    coordinator = CertificateLifecycleCoordinator(
        parser=PemCertificateParser(),
        key_store=key_store,
        distributions=distributions,
        authority=authority,
        cloudfront=settings.cloudfront,
    )
    return DomainManager(
        allocator=allocator,
        coordinator=coordinator,
        distributions=distributions,
        authority=authority,
        retire_min_age=timedelta(hours=settings.janitor.min_age_hours),
        retire_statuses=settings.janitor.retire_statuses,
    )


def main() -> None:
    """Wire dependencies and run the certificate janitor on its schedule."""
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        log_level=settings.log_level,
        pool_size=len(settings.cloudfront.distribution_ids),
        capacity=settings.cloudfront.max_aliases_per_distribution,
        janitor_enabled=settings.janitor.enabled,
        cron=settings.janitor.cron,
    )

    if not settings.janitor.enabled:
        log.info("app.janitor_disabled", hint="set JANITOR__ENABLED=true to schedule certificate retirement")
        return

    manager = create_domain_manager(settings)
    scheduler = create_scheduler(
        janitor_fn=manager.retire_unused_certificates,
        cron=settings.janitor.cron,
        run_on_startup=settings.janitor.run_on_startup,
    )

    log.info("app.scheduler_starting", cron=settings.janitor.cron)

    try:
        scheduler.start()
    except KeyboardInterrupt:
        log.info("app.shutdown", reason="signal received")
    except SystemExit:
        log.info("app.shutdown", reason="signal received")
        raise
    except Exception as e:
        log.error("app.fatal_error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()

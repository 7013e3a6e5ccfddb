"""
FastAPI + Uvicorn ASGI application.

Exposes the DomainManager operations over HTTP and, when enabled, runs the
certificate janitor scheduler in a background thread. Every route runs the
synchronous manager call in a worker thread (asyncio.to_thread) and turns the
Result into a response with railway.http_support:

  Success → 200/201 with the JSON-serialised value
  Failure → HttpStatusMapper status with {error_code, kind, message, details, timestamp}

Entry point for production: uvicorn cdn_domains.asgi:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import structlog
from apscheduler.schedulers.base import BaseScheduler
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from railway.http_support import build_fastapi_response, to_jsonable
from railway.result import Result

from cdn_domains import __version__
from cdn_domains.config import AppSettings
from cdn_domains.domain.models import (
    Certificate,
    CertificateState,
    CertificateUpload,
    DistributionRef,
    DistributionStatus,
    StoredKeyMaterial,
)
from cdn_domains.main import configure_structlog, create_domain_manager
from cdn_domains.manager import DomainManager
from cdn_domains.scheduler import create_scheduler

# ─────────────────────── Global State ───────────────────────
# Set during app startup; read by the routes and the health check.

_manager: DomainManager | None = None
_scheduler: BaseScheduler | None = None
_scheduler_thread: threading.Thread | None = None
_error_message: str | None = None
log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Startup: load settings, wire the DomainManager, start the janitor thread if enabled.
    Shutdown: stop the scheduler and wait for its thread.
    """
    global _manager, _scheduler, _scheduler_thread, _error_message

    try:
        settings = AppSettings()
    except Exception as e:
        _error_message = f"Configuration error: {e}"
        log.error("asgi.startup_error", error=_error_message)
        raise

    configure_structlog(settings.log_level)
    log.info(
        "asgi.startup_config",
        version=__version__,
        log_level=settings.log_level,
        pool_size=len(settings.cloudfront.distribution_ids),
        janitor_enabled=settings.janitor.enabled,
    )

    try:
        _manager = create_domain_manager(settings)
    except Exception as e:
        _error_message = f"Failed to initialize adapters: {e}"
        log.error("asgi.init_error", error=_error_message)
        raise

    if settings.janitor.enabled:
        _scheduler = create_scheduler(
            janitor_fn=_manager.retire_unused_certificates,
            cron=settings.janitor.cron,
            run_on_startup=settings.janitor.run_on_startup,
            handle_signals=False,
        )
        _scheduler_thread = threading.Thread(target=_run_scheduler, args=(_scheduler,), daemon=True)
        _scheduler_thread.start()

    log.info("asgi.startup_complete")

    yield

    log.info("asgi.shutdown", reason="SIGTERM or server stop")
    if _scheduler is not None:
        try:
            _scheduler.shutdown(wait=True)
            log.info("asgi.scheduler_shutdown_complete")
        except Exception as e:
            log.warning("asgi.scheduler_shutdown_error", error=str(e))
    if _scheduler_thread is not None and _scheduler_thread.is_alive():
        _scheduler_thread.join(timeout=5.0)
        if _scheduler_thread.is_alive():
            log.warning("asgi.scheduler_thread_timeout", timeout_seconds=5.0)

    log.info("asgi.shutdown_complete")


def _run_scheduler(scheduler: BaseScheduler) -> None:
    global _error_message
    try:
        log.info("asgi.scheduler_thread_started")
        scheduler.start()
    except Exception as e:
        _error_message = f"Scheduler error: {e}"
        log.error("asgi.scheduler_error", error=_error_message)


app = FastAPI(
    title="cdn-domains",
    description="Custom domains and certificates on shared CloudFront distributions",
    version=__version__,
    lifespan=lifespan,
)


# ─────────────────────── Request bodies ───────────────────────


class RegisterDomainRequest(BaseModel):
    hostname: str = Field(min_length=1)
    distribution_id: str | None = None


class TransferDomainRequest(BaseModel):
    source_id: str = Field(min_length=1)
    target_id: str = Field(min_length=1)


class UploadCertificateRequest(BaseModel):
    certificate_body: str
    private_key: str = Field(repr=False)
    certificate_chain: str | None = None
    rotation: bool = False
    provision_distribution: bool = True


class ProvisionDistributionRequest(BaseModel):
    common_name: str
    key_material_id: str = Field(min_length=1)


class ManagedCertificateRequest(BaseModel):
    apex_domain: str = Field(min_length=1)


class ValidationEmailRequest(BaseModel):
    domain: str = Field(min_length=1)
    arn: str = Field(min_length=1)


# ─────────────────────── Helpers ───────────────────────


def _unavailable() -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"status": "unavailable", "reason": _error_message or "Domain manager not initialized"},
    )


async def _respond(
    call: Callable[[DomainManager], Result[Any]],
    success_status: int = 200,
    serialize: Callable[[Any], Any] = to_jsonable,
) -> JSONResponse:
    manager = _manager
    if manager is None:
        return _unavailable()
    result = await asyncio.to_thread(call, manager)
    return build_fastapi_response(result, success_status=success_status, serialize=serialize)


def _arn_body(arn: str) -> dict[str, str]:
    return {"arn": arn}


# ─────────────────────── Custom domains ───────────────────────


@app.post("/domains")
async def register_domain(request: RegisterDomainRequest) -> JSONResponse:
    return await _respond(lambda m: m.register(request.hostname, request.distribution_id), success_status=201)


@app.delete("/domains/{hostname}")
async def unregister_domain(hostname: str, distribution_id: str | None = None) -> JSONResponse:
    return await _respond(lambda m: m.unregister(hostname, distribution_id))


@app.get("/domains/{hostname}")
async def domain_registration(hostname: str) -> JSONResponse:
    return await _respond(
        lambda m: m.is_registered(hostname),
        serialize=lambda registered: {"hostname": hostname, "registered": registered},
    )


@app.post("/domains/{hostname}/transfer")
async def transfer_domain(hostname: str, request: TransferDomainRequest) -> JSONResponse:
    return await _respond(lambda m: m.transfer_domain(hostname, request.source_id, request.target_id))


# ─────────────────────── Customer certificates ───────────────────────


@app.post("/certificates")
async def upload_certificate(request: UploadCertificateRequest) -> JSONResponse:
    upload = CertificateUpload(
        certificate_body=request.certificate_body,
        private_key=request.private_key,
        certificate_chain=request.certificate_chain,
        rotation=request.rotation,
        provision_distribution=request.provision_distribution,
    )
    return await _respond(lambda m: m.upload_certificate(upload), success_status=201)


@app.post("/certificates/{stored_name}/distribution")
async def provision_distribution(stored_name: str, request: ProvisionDistributionRequest) -> JSONResponse:
    """Resume a certificate whose key material is stored but whose distribution was not created."""
    certificate = Certificate(
        common_name=request.common_name,
        stored_name=stored_name,
        state=CertificateState.KEY_STORED,
        key_material=StoredKeyMaterial(name=stored_name, key_material_id=request.key_material_id),
    )
    return await _respond(lambda m: m.provision_distribution(certificate), success_status=201)


# ─────────────────────── Managed certificates ───────────────────────


@app.post("/certificates/managed")
async def request_managed_certificate(request: ManagedCertificateRequest) -> JSONResponse:
    return await _respond(
        lambda m: m.request_managed_certificate(request.apex_domain),
        success_status=201,
        serialize=_arn_body,
    )


@app.get("/certificates/managed/status")
async def managed_certificate_status(arn: str) -> JSONResponse:
    return await _respond(
        lambda m: m.get_certificate_status(arn),
        serialize=lambda status: {"arn": arn, "status": status},
    )


@app.post("/certificates/managed/validation-email")
async def resend_validation_email(request: ValidationEmailRequest) -> JSONResponse:
    return await _respond(lambda m: m.resend_validation_email(request.domain, request.arn), serialize=_arn_body)


@app.delete("/certificates/managed")
async def delete_managed_certificate(arn: str) -> JSONResponse:
    return await _respond(lambda m: m.delete_managed_certificate(arn), serialize=_arn_body)


@app.delete("/certificates/{stored_name}")
async def delete_certificate(stored_name: str, distribution_id: str | None = None) -> JSONResponse:
    certificate = Certificate(
        common_name=stored_name,
        stored_name=stored_name,
        state=CertificateState.ACTIVE,
        distribution=(
            DistributionRef(id=distribution_id, status=DistributionStatus.UNKNOWN)
            if distribution_id
            else None
        ),
    )
    return await _respond(lambda m: m.delete_certificate(certificate))


# ─────────────────────── Distributions ───────────────────────


@app.get("/distributions/{distribution_id}/status")
async def distribution_status(distribution_id: str) -> JSONResponse:
    return await _respond(
        lambda m: m.get_distribution_status(distribution_id),
        serialize=lambda status: {"distribution_id": distribution_id, "status": status.value},
    )


@app.post("/distributions/{distribution_id}/disable")
async def disable_distribution(distribution_id: str) -> JSONResponse:
    return await _respond(
        lambda m: m.disable_distribution(distribution_id),
        serialize=lambda status: {"distribution_id": distribution_id, "enabled": False, "status": status.value},
    )


@app.delete("/distributions/{distribution_id}")
async def delete_distribution(distribution_id: str) -> JSONResponse:
    return await _respond(
        lambda m: m.delete_distribution(distribution_id),
        serialize=lambda deleted: {"distribution_id": deleted, "deleted": True},
    )


# ─────────────────────── Probes ───────────────────────


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe.

    503 when startup failed, or when the janitor is scheduled but its thread died.
    """
    if _error_message:
        log.warning("health.check_failed", error=_error_message)
        return JSONResponse(status_code=503, content={"status": "unhealthy", "error": _error_message})

    if _manager is None:
        return JSONResponse(status_code=503, content={"status": "unhealthy", "reason": "not initialized"})

    if _scheduler is not None and (_scheduler_thread is None or not _scheduler_thread.is_alive()):
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "reason": "janitor thread not running"},
        )

    return JSONResponse(status_code=200, content={"status": "healthy"})


@app.get("/info")
async def info() -> dict[str, Any]:
    return {
        "name": "cdn-domains",
        "version": __version__,
        "initialized": _manager is not None,
        "janitor_scheduled": _scheduler is not None,
        "janitor_running": _scheduler_thread is not None and _scheduler_thread.is_alive(),
        "has_error": _error_message is not None,
    }


if __name__ == "__main__":
    # For local testing: python -m uvicorn cdn_domains.asgi:app --reload
    import uvicorn

    uvicorn.run(
        "cdn_domains.asgi:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info",
    )

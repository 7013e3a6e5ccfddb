"""
Scheduler — periodic execution of the certificate janitor.

Uses APScheduler (3.x) for lightweight in-process scheduling driven by a
standard 5-field cron expression. Each run is wrapped in a
LoggingExecutionContext for timing and outcome logging.

Graceful shutdown: SIGINT/SIGTERM stop the scheduler cleanly.
"""

from __future__ import annotations

import signal
import sys
from collections.abc import Callable

import structlog
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from railway import LoggingExecutionContext
from railway.result import Result

log = structlog.get_logger()

JANITOR_JOB_ID = "certificate_janitor"


def cron_trigger(cron: str) -> CronTrigger:
    minute, hour, dom, month, dow = cron.split()
    return CronTrigger(minute=minute, hour=hour, day=dom, month=month, day_of_week=dow)


def create_scheduler(
    janitor_fn: Callable[[], Result[int]],
    cron: str = "0 3 * * *",
    run_on_startup: bool = False,
    scheduler: BaseScheduler | None = None,
    handle_signals: bool = True,
) -> BaseScheduler:
    """
    Create a scheduler that runs the janitor on a cron schedule.

    Args:
        janitor_fn: Zero-argument callable returning Result[int] (certificates retired).
        cron: Standard 5-field cron expression (minute hour dom month dow).
        run_on_startup: If True, execute once immediately before the loop starts.
        scheduler: Scheduler to configure; a BlockingScheduler by default.
        handle_signals: Install SIGINT/SIGTERM handlers. Only possible on the main thread.

    Returns:
        The configured scheduler (call .start() to begin).
    """
    scheduler = scheduler if scheduler is not None else BlockingScheduler()
    ctx = LoggingExecutionContext(operation="CertificateJanitor")

    def _job() -> None:
        result = ctx.execute(janitor_fn)
        if result.is_success():
            log.info("scheduler.job_completed", certificates_retired=result.value())
        else:
            log.error("scheduler.job_failed", failure=str(result.error()))

    scheduler.add_job(
        _job,
        trigger=cron_trigger(cron),
        id=JANITOR_JOB_ID,
        name="Retire unused managed certificates",
        replace_existing=True,
    )

    if run_on_startup:
        log.info("scheduler.startup_run", message="Running janitor immediately on startup")
        _job()

    if handle_signals:
        _register_shutdown_signals(scheduler)

    return scheduler


def _register_shutdown_signals(scheduler: BaseScheduler) -> None:
    """Register SIGINT and SIGTERM handlers for graceful shutdown."""

    def _shutdown(signum: int, frame: object) -> None:
        sig_name = signal.Signals(signum).name
        log.info("scheduler.shutdown_requested", signal=sig_name)
        scheduler.shutdown(wait=False)
        sys.exit(0)

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

"""
Unit tests for the scheduler module.

Tests verify scheduler creation, job wiring, startup execution,
and signal handler registration without starting the blocking loop.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from railway import ErrorCode
from railway.result import Result

from cdn_domains.scheduler import JANITOR_JOB_ID, create_scheduler


class TestCreateScheduler:
    """Verify scheduler factory configuration."""

    def test_creates_scheduler_with_janitor_job(self) -> None:
        """
        GIVEN a janitor function
        WHEN create_scheduler is called
        THEN the returned scheduler has exactly one job with the janitor id.
        """
        janitor_fn = MagicMock(return_value=Result.success(0))
        scheduler = create_scheduler(janitor_fn, cron="0 */12 * * *", run_on_startup=False)

        jobs = scheduler.get_jobs()
        assert len(jobs) == 1
        assert jobs[0].id == JANITOR_JOB_ID

    def test_uses_cron_trigger(self) -> None:
        janitor_fn = MagicMock(return_value=Result.success(0))
        scheduler = create_scheduler(janitor_fn, cron="0 2 * * *", run_on_startup=False)

        job = scheduler.get_jobs()[0]
        assert isinstance(job.trigger, CronTrigger)

    def test_run_on_startup_executes_janitor_immediately(self) -> None:
        janitor_fn = MagicMock(return_value=Result.success(3))
        create_scheduler(janitor_fn, run_on_startup=True)

        janitor_fn.assert_called_once()

    def test_run_on_startup_false_does_not_execute(self) -> None:
        janitor_fn = MagicMock(return_value=Result.success(3))
        create_scheduler(janitor_fn, run_on_startup=False)

        janitor_fn.assert_not_called()

    def test_failed_run_does_not_raise(self) -> None:
        """
        GIVEN the janitor returns a failure
        WHEN it runs on startup
        THEN the failure is logged and no exception escapes.
        """
        janitor_fn = MagicMock(
            return_value=Result.failure(ErrorCode.EXTERNAL_SERVICE_ERROR, "AccessDenied")
        )

        create_scheduler(janitor_fn, run_on_startup=True)

        janitor_fn.assert_called_once()

    def test_crashing_run_does_not_raise(self) -> None:
        janitor_fn = MagicMock(side_effect=RuntimeError("boom"))

        create_scheduler(janitor_fn, run_on_startup=True)

        janitor_fn.assert_called_once()

    def test_accepts_a_provided_scheduler(self) -> None:
        background = BackgroundScheduler()
        janitor_fn = MagicMock(return_value=Result.success(0))

        scheduler = create_scheduler(janitor_fn, scheduler=background, handle_signals=False)

        assert scheduler is background
        assert scheduler.get_job(JANITOR_JOB_ID) is not None


class TestShutdownSignals:
    def test_registers_sigint_and_sigterm(self) -> None:
        janitor_fn = MagicMock(return_value=Result.success(0))
        with patch("cdn_domains.scheduler.signal.signal") as mock_signal:
            create_scheduler(janitor_fn, run_on_startup=False)

        registered = {c.args[0] for c in mock_signal.call_args_list}
        assert len(registered) == 2

    def test_handle_signals_false_registers_nothing(self) -> None:
        janitor_fn = MagicMock(return_value=Result.success(0))
        with patch("cdn_domains.scheduler.signal.signal") as mock_signal:
            create_scheduler(janitor_fn, run_on_startup=False, handle_signals=False)

        mock_signal.assert_not_called()

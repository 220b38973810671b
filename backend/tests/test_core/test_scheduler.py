"""Tests for the background scheduler handle and its jobs."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

import repositories.db_models as db_models
from core.scheduler import (
    AUTO_CLOSE_JOB_ID,
    WEEKLY_DIGEST_JOB_ID,
    auto_close_job,
    start_background_scheduler,
    weekly_digest_job,
)


class NonClosingSession:
    """Hands the test session to a job without letting the job close it."""

    def __init__(self, session):
        self.session = session

    def __getattr__(self, name):
        return getattr(self.session, name)

    def close(self) -> None:
        pass


class TestBackgroundTaskHandle:
    def test_start_and_stop(self) -> None:
        handle = start_background_scheduler(run_sweep_now=False)
        try:
            assert handle.running is True
            job_ids = {job["id"] for job in handle.jobs()}
            assert job_ids == {WEEKLY_DIGEST_JOB_ID, AUTO_CLOSE_JOB_ID}
            assert all(job["next_run_time"] for job in handle.jobs())
        finally:
            handle.stop()

        assert handle.running is False

    def test_stop_is_idempotent(self) -> None:
        handle = start_background_scheduler(run_sweep_now=False)
        handle.stop()
        handle.stop()
        assert handle.running is False

    def test_initial_sweep_failure_does_not_prevent_start(self) -> None:
        with patch(
            "services.admin_message_service.AdminMessageService.auto_close_resolved",
            side_effect=RuntimeError("db down"),
        ):
            handle = start_background_scheduler()
        try:
            assert handle.running is True
        finally:
            handle.stop()


class TestJobs:
    def test_auto_close_job_uses_its_own_session(
        self, db_session, citizen, admin_user
    ) -> None:
        message = db_models.AdminMessage(
            user_id=citizen.id,
            admin_id=admin_user.id,
            issue_type="Other",
            description="Old ticket",
            status="resolved",
            resolved_at=datetime.now(timezone.utc) - timedelta(days=5),
        )
        db_session.add(message)
        db_session.commit()

        closed = auto_close_job(lambda: NonClosingSession(db_session))

        assert closed == 1

    def test_weekly_digest_job_reraises(self) -> None:
        class BrokenSession:
            closed = False

            def close(self) -> None:
                BrokenSession.closed = True

        with patch(
            "services.digest_service.DigestService.send_weekly_summaries",
            side_effect=RuntimeError("boom"),
        ):
            with pytest.raises(RuntimeError):
                weekly_digest_job(BrokenSession)

        assert BrokenSession.closed is True

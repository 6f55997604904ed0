from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from occasions.db.database import Base
from occasions.models import Notification, NotificationTemplate, TriggerType, User


@pytest.fixture
def db_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    Base.metadata.drop_all(engine)


@pytest.fixture
def todays_template(db_session):
    """A custom-date template that matches today, plus one user."""
    today = date.today()
    db_session.add(User(id="user0000abc123", email="ana@example.com", name="Ana"))
    db_session.add(
        NotificationTemplate(
            name="Today",
            trigger=TriggerType.custom_date,
            custom_month=today.month,
            custom_day=today.day,
            title_bg="Здравей, {name}",
            title_en="Hello, {name}",
            title_es="Hola, {name}",
            message_bg="m",
            message_en="m",
            message_es="m",
        )
    )
    db_session.commit()


class TestRunTemplateNotifications:
    @patch("occasions.scheduler.jobs.get_sync_session")
    def test_processes_templates(self, mock_get_session, db_session, todays_template):
        mock_get_session.return_value.__enter__ = MagicMock(return_value=db_session)
        mock_get_session.return_value.__exit__ = MagicMock(return_value=False)

        from occasions.scheduler.jobs import run_template_notifications

        result = run_template_notifications()

        assert result.processed == 1
        assert result.sent == 1
        assert db_session.query(Notification).count() == 1

    @patch("occasions.scheduler.jobs.settings")
    @patch("occasions.scheduler.jobs.get_sync_session")
    def test_skips_when_notifications_disabled(self, mock_get_session, mock_settings):
        mock_settings.notification_enabled = False

        from occasions.scheduler.jobs import run_template_notifications

        assert run_template_notifications() is None
        mock_get_session.assert_not_called()


class TestRunCouponReminders:
    @patch("occasions.scheduler.jobs.get_sync_session")
    def test_runs_sweep(self, mock_get_session, db_session):
        mock_get_session.return_value.__enter__ = MagicMock(return_value=db_session)
        mock_get_session.return_value.__exit__ = MagicMock(return_value=False)

        from occasions.scheduler.jobs import run_coupon_reminders

        result = run_coupon_reminders()

        assert result.sent == 0
        assert result.errors == []

    @patch("occasions.scheduler.jobs.settings")
    @patch("occasions.scheduler.jobs.get_sync_session")
    def test_skips_when_notifications_disabled(self, mock_get_session, mock_settings):
        mock_settings.notification_enabled = False

        from occasions.scheduler.jobs import run_coupon_reminders

        assert run_coupon_reminders() is None
        mock_get_session.assert_not_called()


def test_create_scheduler_registers_jobs():
    from occasions.scheduler.runner import create_scheduler

    scheduler = create_scheduler()
    jobs = {job.id: job for job in scheduler.get_jobs()}

    assert set(jobs) == {"template_notifications", "coupon_reminders"}
    assert jobs["template_notifications"].name == "Template Notifications"


def test_scheduler_status_lifecycle():
    from occasions.scheduler import runner

    assert runner.scheduler_status() == {"scheduler_running": False, "jobs": []}

    runner.start_scheduler()
    try:
        status = runner.scheduler_status()
        assert status["scheduler_running"] is True
        assert {job["id"] for job in status["jobs"]} == {
            "template_notifications",
            "coupon_reminders",
        }
        assert all(job["next_run"] for job in status["jobs"])
    finally:
        runner.stop_scheduler()

    assert runner.scheduler_status()["scheduler_running"] is False

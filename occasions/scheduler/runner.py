from typing import Any, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from occasions.config import get_settings
from occasions.scheduler.jobs import run_coupon_reminders, run_template_notifications


def create_scheduler() -> BackgroundScheduler:
    settings = get_settings()
    scheduler = BackgroundScheduler()

    # 每日依設定時間執行通知範本
    scheduler.add_job(
        run_template_notifications,
        CronTrigger(hour=settings.template_cron_hour, minute=settings.template_cron_minute),
        id="template_notifications",
        name="Template Notifications",
    )

    # 定期檢查即將到期的優惠券
    scheduler.add_job(
        run_coupon_reminders,
        "interval",
        hours=settings.reminder_interval_hours,
        id="coupon_reminders",
        name="Coupon Reminders",
    )

    logger.info("Scheduler configured with jobs")
    return scheduler


_scheduler: Optional[BackgroundScheduler] = None


def start_scheduler() -> BackgroundScheduler:
    global _scheduler
    _scheduler = create_scheduler()
    _scheduler.start()
    logger.info("Scheduler started")
    return _scheduler


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown()
        logger.info("Scheduler stopped")
    _scheduler = None


def scheduler_status() -> Dict[str, Any]:
    """Running flag plus the next run time of every registered job."""
    if _scheduler is None:
        return {"scheduler_running": False, "jobs": []}
    return {
        "scheduler_running": _scheduler.running,
        "jobs": [
            {
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
            }
            for job in _scheduler.get_jobs()
        ],
    }

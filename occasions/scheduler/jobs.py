from __future__ import annotations

from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from occasions.config import get_settings
from occasions.notifications.processor import ProcessResult, TemplateProcessor
from occasions.notifications.reminders import ReminderResult, ReminderSweeper

settings = get_settings()

# 同步版本的資料庫連線（給排程使用）
sync_database_url = settings.sync_database_url


def get_sync_session() -> Session:
    engine = create_engine(sync_database_url)
    return Session(engine)


def run_template_notifications() -> Optional[ProcessResult]:
    """每日通知範本任務"""
    if not settings.notification_enabled:
        logger.info("Notifications are disabled, skipping template run")
        return None

    logger.info(f"Starting template notifications at {datetime.now()}")

    with get_sync_session() as session:
        result = TemplateProcessor(session).process_templates()

    logger.info(
        f"[Cron Notifications] Processed: {result.processed}, Sent: {result.sent}, "
        f"Coupons: {result.coupons_created}"
    )
    if result.errors:
        logger.warning(f"[Cron Notifications] Errors: {'; '.join(result.errors)}")
    return result


def run_coupon_reminders() -> Optional[ReminderResult]:
    """優惠券到期前提醒"""
    if not settings.notification_enabled:
        logger.info("Notifications are disabled, skipping coupon reminders")
        return None

    logger.info(f"Starting coupon reminder sweep at {datetime.now()}")

    with get_sync_session() as session:
        result = ReminderSweeper(session).process_reminder_notifications()

    logger.info(f"[Cron Reminders] Sent: {result.sent}")
    if result.errors:
        logger.warning(f"[Cron Reminders] Errors: {'; '.join(result.errors)}")
    return result

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from occasions.api.security import require_cron_secret
from occasions.db.database import get_db
from occasions.notifications.processor import process_templates
from occasions.notifications.reminders import process_reminder_notifications

router = APIRouter(
    prefix="/api/cron",
    tags=["cron"],
    dependencies=[Depends(require_cron_secret)],
)


@router.api_route("/notifications", methods=["GET", "POST"])
async def cron_notifications(db: AsyncSession = Depends(get_db)):
    result = await db.run_sync(process_templates)
    logger.info(
        f"[Cron Notifications] Processed: {result.processed}, Sent: {result.sent}, "
        f"Coupons: {result.coupons_created}"
    )
    if result.errors:
        logger.warning(f"[Cron Notifications] Errors: {'; '.join(result.errors)}")
    return asdict(result)


@router.api_route("/reminders", methods=["GET", "POST"])
async def cron_reminders(db: AsyncSession = Depends(get_db)):
    result = await db.run_sync(process_reminder_notifications)
    logger.info(f"[Cron Reminders] Sent: {result.sent}")
    if result.errors:
        logger.warning(f"[Cron Reminders] Errors: {'; '.join(result.errors)}")
    return asdict(result)

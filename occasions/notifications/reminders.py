from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session, joinedload

from occasions.config import get_settings
from occasions.models import (
    REMINDABLE_TYPES,
    CouponUsage,
    Notification,
    NotificationType,
)
from occasions.notifications.formatter import build_reminder_copy, format_coupon_value


@dataclass
class ReminderResult:
    sent: int = 0
    errors: List[str] = field(default_factory=list)


class ReminderSweeper:
    """Sends one "coupon expires soon" reminder per opened, unused coupon notification."""

    def __init__(
        self,
        session: Session,
        now: Optional[datetime] = None,
        window: Optional[timedelta] = None,
    ):
        self.session = session
        self.now = now or datetime.now()
        self.window = window or timedelta(hours=get_settings().reminder_window_hours)

    def process_reminder_notifications(self) -> ReminderResult:
        result = ReminderResult()

        try:
            candidates = self._candidates()
        except Exception as e:
            self.session.rollback()
            error = f"Reminder processing failed: {e}"
            logger.error(error)
            result.errors.append(error)
            return result

        logger.info(f"Checking {len(candidates)} coupon notifications for reminders")

        for notification in candidates:
            notification_id = notification.id
            try:
                if self._remind(notification):
                    result.sent += 1
            except Exception as e:
                self.session.rollback()
                error = f"Reminder for notification {notification_id}: {e}"
                logger.error(error)
                result.errors.append(error)

        logger.info(f"Reminder sweep finished: sent={result.sent} errors={len(result.errors)}")
        return result

    def _candidates(self) -> List[Notification]:
        return (
            self.session.query(Notification)
            .options(joinedload(Notification.coupon), joinedload(Notification.user))
            .filter(
                Notification.coupon_id.isnot(None),
                Notification.read == True,  # noqa: E712
                Notification.reminder_sent_at.is_(None),
                Notification.type.in_(REMINDABLE_TYPES),
            )
            .order_by(Notification.created_at, Notification.id)
            .all()
        )

    def _in_window(self, expires_at: Optional[datetime]) -> bool:
        if expires_at is None:
            return False
        return self.now < expires_at <= self.now + self.window

    def _already_used(self, coupon_id: str, email: str) -> bool:
        usage = (
            self.session.query(CouponUsage.id)
            .filter_by(coupon_id=coupon_id, email=email)
            .first()
        )
        return usage is not None

    def _remind(self, notification: Notification) -> bool:
        """Send the reminder for one notification. Returns False when skipped."""
        coupon = notification.coupon
        if coupon is None or not self._in_window(coupon.expires_at):
            return False

        if self._already_used(coupon.id, notification.user.email):
            logger.debug(f"Coupon {coupon.code} already used, no reminder")
            return False

        title, message = build_reminder_copy(
            coupon.code, format_coupon_value(coupon.type, coupon.value, coupon.currency)
        )
        self.session.add(
            Notification(
                user_id=notification.user_id,
                type=NotificationType.coupon_reminder,
                title=title,
                message=message,
                link=notification.link,
                coupon_id=notification.coupon_id,
            )
        )
        notification.reminder_sent_at = self.now
        self.session.commit()

        logger.info(f"Sent reminder for coupon {coupon.code} to user {notification.user_id}")
        return True


def process_reminder_notifications(
    session: Session, now: Optional[datetime] = None
) -> ReminderResult:
    return ReminderSweeper(session, now).process_reminder_notifications()

"""Daily delivery of template notifications.

Every active template is checked against ``today + days_before``. Matching users
that have no send log for the current year get a notification (and an auto-coupon
when the template asks for one). The send log is the only thing that keeps a
repeated run from sending twice, so the notification and its log row are
committed together.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional, Set, Tuple

from loguru import logger
from sqlalchemy.orm import Session

from occasions.models import (
    Notification,
    NotificationTemplate,
    NotificationType,
    TemplateSendLog,
    TriggerType,
    User,
)
from occasions.notifications.coupons import ProvisionedCoupon, provision_coupon
from occasions.notifications.formatter import render_localized
from occasions.triggers.matcher import find_matching_users

NOTIFICATION_TYPES = {
    TriggerType.birthday: NotificationType.auto_birthday,
    TriggerType.christmas: NotificationType.auto_christmas,
    TriggerType.new_year: NotificationType.auto_new_year,
    TriggerType.orthodox_easter: NotificationType.auto_easter,
    TriggerType.custom_date: NotificationType.auto_custom,
}


class TemplateNotFound(LookupError):
    pass


class UserNotFound(LookupError):
    pass


@dataclass
class ProcessResult:
    processed: int = 0
    sent: int = 0
    coupons_created: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class TestSendResult:
    notification_id: str
    coupon_id: Optional[str] = None


def get_notification_type(trigger: TriggerType) -> NotificationType:
    return NOTIFICATION_TYPES.get(trigger, NotificationType.auto_custom)


class TemplateProcessor:
    """Runs notification templates against the users table."""

    def __init__(self, session: Session, now: Optional[datetime] = None):
        self.session = session
        self.now = now or datetime.now()

    def process_templates(self) -> ProcessResult:
        """Process every active template once.

        Failures are collected into ``ProcessResult.errors``; nothing is raised.
        """
        result = ProcessResult()
        today = self.now.date()

        templates = (
            self.session.query(NotificationTemplate)
            .filter_by(active=True)
            .order_by(NotificationTemplate.created_at, NotificationTemplate.id)
            .all()
        )
        logger.info(f"Processing {len(templates)} active notification templates")

        for template in templates:
            result.processed += 1
            template_name = template.name
            try:
                self._process_template(template, today, result)
            except Exception as e:
                self.session.rollback()
                error = f'Template "{template_name}": {e}'
                logger.error(error)
                result.errors.append(error)

        logger.info(
            f"Template run finished: processed={result.processed} sent={result.sent} "
            f"coupons={result.coupons_created} errors={len(result.errors)}"
        )
        return result

    def test_send_template(self, template_id: str, user_id: str) -> TestSendResult:
        """Send one template to one user, skipping the dedup gate and the send log.

        Raises:
            TemplateNotFound: no template with ``template_id``.
            UserNotFound: no user with ``user_id``.
        """
        template = self.session.get(NotificationTemplate, template_id)
        if template is None:
            raise TemplateNotFound("Template not found")

        user = self.session.get(User, user_id)
        if user is None:
            raise UserNotFound("User not found")

        notification, provisioned = self._deliver(template, user, test=True)
        logger.info(f"Test-sent template {template.name!r} to user {user.id}")
        return TestSendResult(
            notification_id=notification.id,
            coupon_id=provisioned.coupon.id if provisioned else None,
        )

    def _process_template(
        self, template: NotificationTemplate, today: date, result: ProcessResult
    ) -> None:
        template_name = template.name
        event_date = today + timedelta(days=template.days_before)

        # One-off custom dates fire once in the template's lifetime
        if template.trigger == TriggerType.custom_date and not template.recurring:
            if self._has_any_send_log(template.id):
                logger.debug(f"Template {template_name!r} already fired once, skipping")
                return

        users = find_matching_users(self.session, template, event_date)
        if not users:
            self._record_run(template, 0)
            return

        already_sent = self._sent_user_ids(template.id, today.year)
        eligible = [user for user in users if user.id not in already_sent]
        if not eligible:
            logger.debug(f"Template {template_name!r}: all matching users already notified")
            self._record_run(template, 0)
            return

        sent_count = 0
        for user in eligible:
            user_id = user.id
            try:
                _, provisioned = self._deliver(template, user, year=today.year)
            except Exception as e:
                self.session.rollback()
                error = f'Template "{template_name}" user {user_id}: {e}'
                logger.error(error)
                result.errors.append(error)
                continue

            sent_count += 1
            result.sent += 1
            if provisioned and provisioned.created:
                result.coupons_created += 1

        self._record_run(template, sent_count)
        logger.info(f"Template {template_name!r}: sent {sent_count}/{len(eligible)}")

    def _deliver(
        self,
        template: NotificationTemplate,
        user: User,
        year: Optional[int] = None,
        test: bool = False,
    ) -> Tuple[Notification, Optional[ProvisionedCoupon]]:
        """Create the notification (and coupon) for one user and commit it.

        A send log row for ``year`` is written in the same commit unless this is a
        test send.
        """
        provisioned = None
        if template.provisions_coupon:
            provisioned = provision_coupon(self.session, template, user.id, self.now, test=test)

        title, message = render_localized(
            template,
            name=user.name,
            coupon_code=provisioned.coupon.code if provisioned else None,
            coupon_value=provisioned.value_label if provisioned else None,
            expires_at=provisioned.expires_label if provisioned else None,
        )
        coupon_id = provisioned.coupon.id if provisioned else None

        notification = Notification(
            user_id=user.id,
            type=get_notification_type(template.trigger),
            title=title,
            message=message,
            link=template.link,
            coupon_id=coupon_id,
        )
        self.session.add(notification)

        if not test:
            self.session.add(
                TemplateSendLog(
                    template_id=template.id,
                    user_id=user.id,
                    year=year,
                    coupon_id=coupon_id,
                )
            )

        self.session.commit()
        return notification, provisioned

    def _has_any_send_log(self, template_id: str) -> bool:
        exists = (
            self.session.query(TemplateSendLog.id)
            .filter_by(template_id=template_id)
            .first()
        )
        return exists is not None

    def _sent_user_ids(self, template_id: str, year: int) -> Set[str]:
        rows = (
            self.session.query(TemplateSendLog.user_id)
            .filter_by(template_id=template_id, year=year)
            .all()
        )
        return {row.user_id for row in rows}

    def _record_run(self, template: NotificationTemplate, count: int) -> None:
        template.last_run_at = self.now
        template.last_run_count = count
        self.session.commit()


def process_templates(session: Session, now: Optional[datetime] = None) -> ProcessResult:
    return TemplateProcessor(session, now).process_templates()


def test_send_template(
    session: Session, template_id: str, user_id: str, now: Optional[datetime] = None
) -> TestSendResult:
    return TemplateProcessor(session, now).test_send_template(template_id, user_id)

from __future__ import annotations

import calendar
from datetime import date
from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from occasions.models import NotificationTemplate, TriggerType, User
from occasions.triggers.easter import get_orthodox_easter_date


def is_leap_year(year: int) -> bool:
    return calendar.isleap(year)


def birthday_matches(birth_date: date, event_date: date) -> bool:
    """Match a birth date against the (already shifted) event date.

    Feb 29 birthdays are celebrated on Feb 28 in non-leap years, never on Mar 1.
    """
    if (birth_date.month, birth_date.day) == (event_date.month, event_date.day):
        return True

    return (
        not is_leap_year(event_date.year)
        and (event_date.month, event_date.day) == (2, 28)
        and (birth_date.month, birth_date.day) == (2, 29)
    )


def event_matches(
    trigger: TriggerType,
    event_date: date,
    custom_month: Optional[int] = None,
    custom_day: Optional[int] = None,
) -> bool:
    """Check the calendar condition of a trigger that applies to every user."""
    if trigger == TriggerType.christmas:
        return (event_date.month, event_date.day) == (12, 25)

    if trigger == TriggerType.new_year:
        return (event_date.month, event_date.day) == (1, 1)

    if trigger == TriggerType.orthodox_easter:
        return event_date == get_orthodox_easter_date(event_date.year)

    if trigger == TriggerType.custom_date:
        if not custom_month or not custom_day:
            return False
        return (event_date.month, event_date.day) == (custom_month, custom_day)

    return False


def find_matching_users(
    session: Session, template: NotificationTemplate, event_date: date
) -> List[User]:
    """Return the users whose event for ``template`` falls on ``event_date``."""
    if template.trigger == TriggerType.birthday:
        users = session.query(User).filter(User.birth_date.isnot(None)).all()
        return [user for user in users if birthday_matches(user.birth_date, event_date)]

    if template.trigger == TriggerType.custom_date and not (
        template.custom_month and template.custom_day
    ):
        logger.warning(f"Template {template.name!r} has no custom month/day, skipping")
        return []

    if not event_matches(
        template.trigger, event_date, template.custom_month, template.custom_day
    ):
        return []

    return session.query(User).order_by(User.created_at, User.id).all()

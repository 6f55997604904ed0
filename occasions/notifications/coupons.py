from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from loguru import logger
from sqlalchemy.orm import Session

from occasions.config import get_settings
from occasions.models import (
    Coupon,
    CouponExpiryMode,
    NotificationTemplate,
    TriggerType,
)
from occasions.notifications.formatter import format_coupon_value, format_expiry_date

COUPON_PREFIXES = {
    TriggerType.birthday: "BDAY",
    TriggerType.christmas: "XMAS",
    TriggerType.new_year: "NEWYEAR",
    TriggerType.orthodox_easter: "EASTER",
    TriggerType.custom_date: "TMPL",
}
DEFAULT_PREFIX = "TMPL"
TEST_SEND_SUFFIX = "T"


@dataclass
class ProvisionedCoupon:
    coupon: Coupon
    created: bool
    value_label: str  # "10%" / "25 EUR"
    expires_label: str  # DD/MM/YYYY


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse ``value`` as a finite decimal, or None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def build_coupon_code(
    trigger: TriggerType, user_id: str, year: int, test: bool = False
) -> str:
    """``{PREFIX}-{last 6 of user id}-{year}``, with a trailing T for test sends."""
    prefix = COUPON_PREFIXES.get(trigger, DEFAULT_PREFIX)
    code = f"{prefix}-{str(user_id)[-6:].upper()}-{year}"
    return f"{code}{TEST_SEND_SUFFIX}" if test else code


def compute_expiry(template: NotificationTemplate, now: datetime) -> datetime:
    if template.coupon_expiry_mode == CouponExpiryMode.date and template.coupon_expires_at:
        return template.coupon_expires_at
    duration = template.coupon_duration or get_settings().default_coupon_duration_days
    return now + timedelta(days=duration)


def provision_coupon(
    session: Session,
    template: NotificationTemplate,
    user_id: str,
    now: datetime,
    test: bool = False,
) -> ProvisionedCoupon:
    """Create the user's coupon for this year, or bring an existing one in line
    with the current template settings.

    The coupon is flushed but not committed; the caller commits it together with
    the notification that references it.
    """
    code = build_coupon_code(template.trigger, user_id, now.year, test=test)
    expires_at = compute_expiry(template, now)
    value = to_decimal(template.coupon_value)
    min_purchase = to_decimal(template.coupon_min_purchase)
    product_ids = list(template.coupon_product_ids or [])

    coupon = session.query(Coupon).filter_by(code=code).first()
    created = coupon is None

    if coupon is not None:
        # Usage history (used_count, max_uses) is left as is
        coupon.expires_at = expires_at
        coupon.type = template.coupon_type
        coupon.value = value
        coupon.currency = template.coupon_currency
        coupon.min_purchase = min_purchase
        coupon.per_user_limit = template.coupon_per_user
        coupon.product_ids = product_ids
        coupon.allow_on_sale = template.coupon_allow_on_sale
        logger.debug(f"Refreshed existing coupon {code}")
    else:
        coupon = Coupon(
            code=code,
            type=template.coupon_type,
            value=value,
            currency=template.coupon_currency,
            min_purchase=min_purchase,
            max_uses=1,
            per_user_limit=template.coupon_per_user,
            product_ids=product_ids,
            allow_on_sale=template.coupon_allow_on_sale,
            show_on_product=False,
            active=True,
            expires_at=expires_at,
        )
        session.add(coupon)
        logger.debug(f"Created coupon {code}")

    session.flush()

    return ProvisionedCoupon(
        coupon=coupon,
        created=created,
        value_label=format_coupon_value(
            template.coupon_type, value, template.coupon_currency
        ),
        expires_label=format_expiry_date(expires_at),
    )

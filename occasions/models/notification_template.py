from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from occasions.db.database import Base
from occasions.models.base import TimestampMixin, new_id


class TriggerType(enum.Enum):
    birthday = "birthday"
    christmas = "christmas"
    new_year = "new_year"
    orthodox_easter = "orthodox_easter"
    custom_date = "custom_date"


class CouponExpiryMode(str, enum.Enum):
    duration = "duration"
    date = "date"


class NotificationTemplate(Base, TimestampMixin):
    __tablename__ = "notification_templates"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    trigger: Mapped[TriggerType] = mapped_column(Enum(TriggerType), nullable=False)
    days_before: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    custom_month: Mapped[Optional[int]] = mapped_column(Integer)  # 1-12
    custom_day: Mapped[Optional[int]] = mapped_column(Integer)
    recurring: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    title_bg: Mapped[str] = mapped_column(String(255), nullable=False)
    title_en: Mapped[str] = mapped_column(String(255), nullable=False)
    title_es: Mapped[str] = mapped_column(String(255), nullable=False)
    message_bg: Mapped[str] = mapped_column(Text, nullable=False)
    message_en: Mapped[str] = mapped_column(Text, nullable=False)
    message_es: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[Optional[str]] = mapped_column(String(500))

    # Auto-coupon
    coupon_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    coupon_type: Mapped[Optional[str]] = mapped_column(String(20))
    coupon_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    coupon_currency: Mapped[Optional[str]] = mapped_column(String(3))
    coupon_duration: Mapped[Optional[int]] = mapped_column(Integer)  # days
    coupon_per_user: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    coupon_product_ids: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    coupon_allow_on_sale: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    coupon_min_purchase: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    coupon_expiry_mode: Mapped[Optional[str]] = mapped_column(String(20))
    coupon_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_run_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    last_run_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    @property
    def provisions_coupon(self) -> bool:
        return bool(self.coupon_enabled and self.coupon_type and self.coupon_value)

    def __repr__(self) -> str:
        return f"<NotificationTemplate {self.name} ({self.trigger.value})>"

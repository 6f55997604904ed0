from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING, Dict, Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from occasions.db.database import Base
from occasions.models.base import new_id

if TYPE_CHECKING:
    from occasions.models.coupon import Coupon
    from occasions.models.user import User


class NotificationType(enum.Enum):
    auto_birthday = "auto_birthday"
    auto_christmas = "auto_christmas"
    auto_new_year = "auto_new_year"
    auto_easter = "auto_easter"
    auto_custom = "auto_custom"
    coupon = "coupon"
    coupon_reminder = "coupon_reminder"


# Types whose coupons get a reminder before they expire
REMINDABLE_TYPES = (
    NotificationType.auto_birthday,
    NotificationType.auto_christmas,
    NotificationType.auto_new_year,
    NotificationType.auto_easter,
    NotificationType.auto_custom,
    NotificationType.coupon,
)


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    type: Mapped[NotificationType] = mapped_column(Enum(NotificationType), nullable=False)
    # {"bg": ..., "en": ..., "es": ...}
    title: Mapped[Dict[str, str]] = mapped_column(JSON, nullable=False)
    message: Mapped[Dict[str, str]] = mapped_column(JSON, nullable=False)
    link: Mapped[Optional[str]] = mapped_column(String(500))
    coupon_id: Mapped[Optional[str]] = mapped_column(ForeignKey("coupons.id"))
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    reminder_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    user: Mapped["User"] = relationship()
    coupon: Mapped[Optional["Coupon"]] = relationship()

    def __repr__(self) -> str:
        return f"<Notification {self.type.value} user={self.user_id}>"

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from occasions.db.database import Base


class TemplateSendLog(Base):
    __tablename__ = "template_send_logs"
    __table_args__ = (
        UniqueConstraint(
            "template_id",
            "user_id",
            "year",
            name="uq_template_send_dedup",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    template_id: Mapped[str] = mapped_column(
        ForeignKey("notification_templates.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    coupon_id: Mapped[Optional[str]] = mapped_column(ForeignKey("coupons.id"))
    sent_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<TemplateSendLog template={self.template_id} user={self.user_id} year={self.year}>"

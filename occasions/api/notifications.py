from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from occasions.db.database import get_db
from occasions.models import Notification

router = APIRouter(prefix="/api/users/{user_id}/notifications", tags=["notifications"])


def notification_to_dict(n: Notification) -> dict:
    return {
        "id": n.id,
        "type": n.type.value,
        "title": n.title,
        "message": n.message,
        "link": n.link,
        "coupon_id": n.coupon_id,
        "read": n.read,
        "read_at": n.read_at.isoformat() if n.read_at else None,
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }


@router.get("")
async def list_notifications(user_id: str, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id)
    )
    return [notification_to_dict(n) for n in result.scalars().all()]


@router.post("/{notification_id}/read")
async def mark_read(user_id: str, notification_id: str, db: AsyncSession = Depends(get_db)):
    notification = await db.get(Notification, notification_id)
    if not notification or notification.user_id != user_id:
        raise HTTPException(status_code=404, detail="Not found")

    if not notification.read:
        notification.read = True
        notification.read_at = datetime.now()
        await db.commit()

    return {"success": True}

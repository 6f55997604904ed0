from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from pydantic import BaseModel
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from occasions.api.security import require_admin_key
from occasions.config import get_settings
from occasions.db.database import get_db
from occasions.models import (
    CouponExpiryMode,
    CouponType,
    NotificationTemplate,
    TemplateSendLog,
    TriggerType,
)
from occasions.notifications.coupons import to_decimal
from occasions.notifications.processor import (
    TemplateNotFound,
    UserNotFound,
    test_send_template,
)

router = APIRouter(
    prefix="/api/admin/notification-templates",
    tags=["notification-templates"],
    dependencies=[Depends(require_admin_key)],
)

LOCALIZED_FIELDS = (
    "title_bg",
    "title_en",
    "title_es",
    "message_bg",
    "message_en",
    "message_es",
)

COUPON_FIELDS = (
    "coupon_type",
    "coupon_value",
    "coupon_currency",
    "coupon_duration",
    "coupon_per_user",
    "coupon_product_ids",
    "coupon_allow_on_sale",
    "coupon_min_purchase",
    "coupon_expiry_mode",
    "coupon_expires_at",
)

# NOT NULL columns; an explicit null in an update leaves them unchanged
REQUIRED_FIELDS = (
    "name",
    "days_before",
    "recurring",
    "active",
    "coupon_enabled",
    "coupon_per_user",
    "coupon_product_ids",
    "coupon_allow_on_sale",
    *LOCALIZED_FIELDS,
)


class TemplatePayload(BaseModel):
    name: Optional[str] = None
    trigger: Optional[str] = None
    days_before: Optional[int] = None
    custom_month: Optional[int] = None
    custom_day: Optional[int] = None
    recurring: Optional[bool] = None
    title_bg: Optional[str] = None
    title_en: Optional[str] = None
    title_es: Optional[str] = None
    message_bg: Optional[str] = None
    message_en: Optional[str] = None
    message_es: Optional[str] = None
    link: Optional[str] = None
    coupon_enabled: Optional[bool] = None
    coupon_type: Optional[str] = None
    coupon_value: Optional[Any] = None
    coupon_currency: Optional[str] = None
    coupon_duration: Optional[int] = None
    coupon_per_user: Optional[int] = None
    coupon_product_ids: Optional[List[str]] = None
    coupon_allow_on_sale: Optional[bool] = None
    coupon_min_purchase: Optional[Any] = None
    coupon_expiry_mode: Optional[str] = None
    coupon_expires_at: Optional[datetime] = None
    active: Optional[bool] = None


class SendTestRequest(BaseModel):
    template_id: str
    user_id: str


def _parse_trigger(value: str) -> TriggerType:
    try:
        return TriggerType(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid trigger type")


def _validate_custom_date(month: Optional[int], day: Optional[int]) -> None:
    if not month or not day:
        raise HTTPException(status_code=400, detail="Custom date requires month and day")
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        raise HTTPException(status_code=400, detail="Custom date is out of range")


def _validate_coupon_type(coupon_type: Optional[str]) -> None:
    if coupon_type not in (CouponType.percentage.value, CouponType.fixed.value):
        raise HTTPException(status_code=400, detail="Invalid coupon type")


def template_to_dict(template: NotificationTemplate, send_count: int = 0) -> Dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "trigger": template.trigger.value,
        "days_before": template.days_before,
        "custom_month": template.custom_month,
        "custom_day": template.custom_day,
        "recurring": template.recurring,
        **{field: getattr(template, field) for field in LOCALIZED_FIELDS},
        "link": template.link,
        "coupon_enabled": template.coupon_enabled,
        "coupon_type": template.coupon_type,
        "coupon_value": str(template.coupon_value) if template.coupon_value is not None else None,
        "coupon_currency": template.coupon_currency,
        "coupon_duration": template.coupon_duration,
        "coupon_per_user": template.coupon_per_user,
        "coupon_product_ids": template.coupon_product_ids,
        "coupon_allow_on_sale": template.coupon_allow_on_sale,
        "coupon_min_purchase": (
            str(template.coupon_min_purchase) if template.coupon_min_purchase is not None else None
        ),
        "coupon_expiry_mode": template.coupon_expiry_mode,
        "coupon_expires_at": (
            template.coupon_expires_at.isoformat() if template.coupon_expires_at else None
        ),
        "active": template.active,
        "last_run_at": template.last_run_at.isoformat() if template.last_run_at else None,
        "last_run_count": template.last_run_count,
        "send_count": send_count,
    }


async def _send_count(db: AsyncSession, template_id: str) -> int:
    result = await db.execute(
        select(func.count(TemplateSendLog.id)).where(TemplateSendLog.template_id == template_id)
    )
    return result.scalar_one()


async def _get_template(db: AsyncSession, template_id: str) -> NotificationTemplate:
    template = await db.get(NotificationTemplate, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Template name already exists")


@router.get("")
async def list_templates(db: AsyncSession = Depends(get_db)):
    templates = (
        await db.execute(
            select(NotificationTemplate).order_by(NotificationTemplate.created_at.desc())
        )
    ).scalars().all()
    counts = dict(
        (
            await db.execute(
                select(TemplateSendLog.template_id, func.count(TemplateSendLog.id)).group_by(
                    TemplateSendLog.template_id
                )
            )
        ).all()
    )
    return [template_to_dict(t, counts.get(t.id, 0)) for t in templates]


@router.get("/{template_id}")
async def get_template(template_id: str, db: AsyncSession = Depends(get_db)):
    template = await _get_template(db, template_id)
    return template_to_dict(template, await _send_count(db, template_id))


@router.post("", status_code=201)
async def create_template(body: TemplatePayload, db: AsyncSession = Depends(get_db)):
    if not body.name or not body.trigger or not all(
        getattr(body, field) for field in LOCALIZED_FIELDS
    ):
        raise HTTPException(
            status_code=400,
            detail="Name, trigger, title, and message in all languages are required",
        )

    trigger = _parse_trigger(body.trigger)
    if trigger == TriggerType.custom_date:
        _validate_custom_date(body.custom_month, body.custom_day)

    coupon_enabled = bool(body.coupon_enabled)
    if coupon_enabled:
        if not body.coupon_type or not body.coupon_value:
            raise HTTPException(
                status_code=400,
                detail="Coupon type and value are required when coupon is enabled",
            )
        _validate_coupon_type(body.coupon_type)
        if body.coupon_type == CouponType.fixed and not body.coupon_currency:
            raise HTTPException(
                status_code=400, detail="Currency is required for fixed coupon type"
            )

    expiry_mode = (body.coupon_expiry_mode or CouponExpiryMode.duration.value) if coupon_enabled else None

    template = NotificationTemplate(
        name=body.name,
        trigger=trigger,
        days_before=body.days_before or 0,
        custom_month=body.custom_month if trigger == TriggerType.custom_date else None,
        custom_day=body.custom_day if trigger == TriggerType.custom_date else None,
        recurring=body.recurring is not False,
        **{field: getattr(body, field) for field in LOCALIZED_FIELDS},
        link=body.link or None,
        coupon_enabled=coupon_enabled,
        coupon_type=body.coupon_type if coupon_enabled else None,
        coupon_value=to_decimal(body.coupon_value) if coupon_enabled else None,
        coupon_currency=(body.coupon_currency or None) if coupon_enabled else None,
        coupon_duration=(
            (body.coupon_duration or get_settings().default_coupon_duration_days)
            if coupon_enabled
            else None
        ),
        coupon_per_user=(body.coupon_per_user or 1) if coupon_enabled else 1,
        coupon_product_ids=(body.coupon_product_ids or []) if coupon_enabled else [],
        coupon_allow_on_sale=bool(body.coupon_allow_on_sale) if coupon_enabled else False,
        coupon_min_purchase=to_decimal(body.coupon_min_purchase) if coupon_enabled else None,
        coupon_expiry_mode=expiry_mode,
        coupon_expires_at=(
            body.coupon_expires_at if expiry_mode == CouponExpiryMode.date else None
        ),
        active=body.active is not False,
    )
    db.add(template)
    await _commit(db)
    await db.refresh(template)

    logger.info(f"Created notification template {template.name!r}")
    return template_to_dict(template)


@router.put("/{template_id}")
async def update_template(
    template_id: str, body: TemplatePayload, db: AsyncSession = Depends(get_db)
):
    template = await _get_template(db, template_id)
    data = body.model_dump(exclude_unset=True)
    for field in REQUIRED_FIELDS:
        if field in data and data[field] is None:
            del data[field]

    if data.get("trigger"):
        data["trigger"] = _parse_trigger(data["trigger"])
    else:
        data.pop("trigger", None)
    trigger = data.get("trigger", template.trigger)

    if trigger == TriggerType.custom_date:
        if "custom_month" in data and "custom_day" in data:
            _validate_custom_date(data["custom_month"], data["custom_day"])
    else:
        data["custom_month"] = None
        data["custom_day"] = None

    coupon_enabled = data.get("coupon_enabled", template.coupon_enabled)
    if coupon_enabled:
        if "coupon_type" in data:
            if not data["coupon_type"]:
                raise HTTPException(
                    status_code=400,
                    detail="Coupon type is required when coupon is enabled",
                )
            _validate_coupon_type(data["coupon_type"])
        if "coupon_value" in data:
            data["coupon_value"] = to_decimal(data["coupon_value"])
        if "coupon_min_purchase" in data:
            data["coupon_min_purchase"] = to_decimal(data["coupon_min_purchase"])
    elif data.get("coupon_enabled") is False:
        for field in COUPON_FIELDS:
            data[field] = None
        data["coupon_per_user"] = 1
        data["coupon_product_ids"] = []
        data["coupon_allow_on_sale"] = False
    else:
        for field in COUPON_FIELDS:
            data.pop(field, None)

    if "link" in data:
        data["link"] = data["link"] or None

    for field, value in data.items():
        setattr(template, field, value)

    await _commit(db)
    await db.refresh(template)

    logger.info(f"Updated notification template {template.name!r}")
    return template_to_dict(template, await _send_count(db, template_id))


@router.delete("/{template_id}", status_code=204)
async def delete_template(template_id: str, db: AsyncSession = Depends(get_db)):
    template = await _get_template(db, template_id)
    await db.execute(delete(TemplateSendLog).where(TemplateSendLog.template_id == template_id))
    await db.delete(template)
    await db.commit()
    logger.info(f"Deleted notification template {template_id}")


@router.post("/test")
async def test_send(body: SendTestRequest, db: AsyncSession = Depends(get_db)):
    try:
        result = await db.run_sync(test_send_template, body.template_id, body.user_id)
    except (TemplateNotFound, UserNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {
        "success": True,
        "notification_id": result.notification_id,
        "coupon_id": result.coupon_id,
    }

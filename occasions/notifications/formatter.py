from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional, Tuple

from occasions.config import get_settings
from occasions.models import CouponType, NotificationTemplate

LOCALES = ("bg", "en", "es")

PLACEHOLDERS = ("{name}", "{couponCode}", "{couponValue}", "{expiresAt}")

REMINDER_TITLES = {
    "bg": "⏰ Не забравяй купона си!",
    "en": "⏰ Don't forget your coupon!",
    "es": "⏰ ¡No olvides tu cupón!",
}

REMINDER_MESSAGES = {
    "bg": "Купонът ти {code} за {value} изтича скоро! Използвай го преди да е късно.",
    "en": "Your coupon {code} for {value} expires soon! Use it before it's gone.",
    "es": "Tu cupón {code} por {value} expira pronto. ¡Úsalo antes de que caduque!",
}


def format_amount(value: Decimal) -> str:
    """Render a decimal without trailing zeros (10.00 -> 10, 7.50 -> 7.5)."""
    return f"{Decimal(value).normalize():f}"


def format_coupon_value(
    coupon_type: str, value: Optional[Decimal], currency: Optional[str] = None
) -> str:
    """Label such as 10% or 25 EUR; a coupon without a value keeps only its unit."""
    currency = currency or get_settings().default_currency
    if value is None:
        return "%" if coupon_type == CouponType.percentage else currency
    if coupon_type == CouponType.percentage:
        return f"{format_amount(value)}%"
    return f"{format_amount(value)} {currency}"


def format_expiry_date(expires_at: datetime) -> str:
    """DD/MM/YYYY"""
    return expires_at.strftime("%d/%m/%Y")


def resolve_placeholders(
    template: str,
    name: Optional[str] = None,
    coupon_code: Optional[str] = None,
    coupon_value: Optional[str] = None,
    expires_at: Optional[str] = None,
) -> str:
    """Substitute the known placeholders, then drop any that are still unresolved."""
    values = {
        "{name}": name,
        "{couponCode}": coupon_code,
        "{couponValue}": coupon_value,
        "{expiresAt}": expires_at,
    }
    result = template
    for token, value in values.items():
        if value:
            result = result.replace(token, value)
    for token in PLACEHOLDERS:
        result = result.replace(token, "")
    return result


def render_localized(
    template: NotificationTemplate,
    name: Optional[str] = None,
    coupon_code: Optional[str] = None,
    coupon_value: Optional[str] = None,
    expires_at: Optional[str] = None,
) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Render the title and message of ``template`` in every locale.

    Returns:
        (title, message), each a dict keyed by locale.
    """
    data = {
        "name": name,
        "coupon_code": coupon_code,
        "coupon_value": coupon_value,
        "expires_at": expires_at,
    }
    title = {
        locale: resolve_placeholders(getattr(template, f"title_{locale}"), **data)
        for locale in LOCALES
    }
    message = {
        locale: resolve_placeholders(getattr(template, f"message_{locale}"), **data)
        for locale in LOCALES
    }
    return title, message


def build_reminder_copy(
    coupon_code: str, coupon_value: str
) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Localized "coupon expires soon" title and message."""
    message = {
        locale: text.format(code=coupon_code, value=coupon_value)
        for locale, text in REMINDER_MESSAGES.items()
    }
    return dict(REMINDER_TITLES), message

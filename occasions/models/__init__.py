from occasions.models.coupon import Coupon, CouponType, CouponUsage
from occasions.models.notification import (
    REMINDABLE_TYPES,
    Notification,
    NotificationType,
)
from occasions.models.notification_template import (
    CouponExpiryMode,
    NotificationTemplate,
    TriggerType,
)
from occasions.models.template_send_log import TemplateSendLog
from occasions.models.user import User

__all__ = [
    "REMINDABLE_TYPES",
    "Coupon",
    "CouponExpiryMode",
    "CouponType",
    "CouponUsage",
    "Notification",
    "NotificationTemplate",
    "NotificationType",
    "TemplateSendLog",
    "TriggerType",
    "User",
]

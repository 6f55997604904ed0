from decimal import Decimal

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from occasions.config import get_settings
from occasions.db.database import Base, ensure_sqlite_dir
from occasions.models import NotificationTemplate, TriggerType

settings = get_settings()
sync_database_url = settings.sync_database_url

TEMPLATES = [
    {
        "name": "Birthday coupon",
        "trigger": TriggerType.birthday,
        "title_bg": "Честит рожден ден, {name}!",
        "title_en": "Happy birthday, {name}!",
        "title_es": "¡Feliz cumpleaños, {name}!",
        "message_bg": "Подарък за теб: {couponValue} отстъпка с код {couponCode}, валиден до {expiresAt}.",
        "message_en": "A gift for you: {couponValue} off with code {couponCode}, valid until {expiresAt}.",
        "message_es": "Un regalo para ti: {couponValue} de descuento con el código {couponCode}, válido hasta {expiresAt}.",
        "coupon_enabled": True,
        "coupon_type": "percentage",
        "coupon_value": Decimal("10"),
        "coupon_duration": 30,
        "coupon_expiry_mode": "duration",
    },
    {
        "name": "Christmas greeting",
        "trigger": TriggerType.christmas,
        "title_bg": "Весела Коледа!",
        "title_en": "Merry Christmas!",
        "title_es": "¡Feliz Navidad!",
        "message_bg": "{name}, благодарим ти, че си с нас тази година.",
        "message_en": "{name}, thank you for being with us this year.",
        "message_es": "{name}, gracias por estar con nosotros este año.",
    },
    {
        "name": "New Year greeting",
        "trigger": TriggerType.new_year,
        "title_bg": "Честита Нова година!",
        "title_en": "Happy New Year!",
        "title_es": "¡Feliz Año Nuevo!",
        "message_bg": "Пожелаваме ти здрава и успешна година, {name}.",
        "message_en": "Wishing you a healthy and successful year, {name}.",
        "message_es": "Te deseamos un año saludable y exitoso, {name}.",
    },
    {
        "name": "Easter greeting",
        "trigger": TriggerType.orthodox_easter,
        "title_bg": "Христос воскресе!",
        "title_en": "Happy Easter!",
        "title_es": "¡Felices Pascuas!",
        "message_bg": "Весели празници, {name}!",
        "message_en": "Happy holidays, {name}!",
        "message_es": "¡Felices fiestas, {name}!",
    },
]


def seed_templates():
    """建立預設通知範本（預設停用）"""
    ensure_sqlite_dir(sync_database_url)
    engine = create_engine(sync_database_url)
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        for template_data in TEMPLATES:
            existing = (
                session.query(NotificationTemplate)
                .filter_by(name=template_data["name"])
                .first()
            )
            if not existing:
                session.add(NotificationTemplate(active=False, **template_data))
                logger.info(f"Added template: {template_data['name']}")
            else:
                logger.info(f"Template already exists: {template_data['name']}")

        session.commit()

    logger.info("Seed completed")


if __name__ == "__main__":
    seed_templates()

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from occasions.db.database import Base
from occasions.models import Coupon, NotificationTemplate, TriggerType
from occasions.notifications.coupons import (
    build_coupon_code,
    compute_expiry,
    provision_coupon,
    to_decimal,
)

NOW = datetime(2025, 3, 10, 8, 0)


@pytest.fixture
def db_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    Base.metadata.drop_all(engine)


def _template(**kwargs):
    defaults = dict(
        name="Birthday",
        trigger=TriggerType.birthday,
        title_bg="t",
        title_en="t",
        title_es="t",
        message_bg="m",
        message_en="m",
        message_es="m",
        coupon_enabled=True,
        coupon_type="percentage",
        coupon_value=Decimal("10"),
        coupon_duration=30,
        coupon_per_user=1,
        coupon_product_ids=[],
        coupon_allow_on_sale=False,
        coupon_expiry_mode="duration",
    )
    defaults.update(kwargs)
    return NotificationTemplate(**defaults)


class TestBuildCouponCode:
    @pytest.mark.parametrize(
        "trigger,prefix",
        [
            (TriggerType.birthday, "BDAY"),
            (TriggerType.christmas, "XMAS"),
            (TriggerType.new_year, "NEWYEAR"),
            (TriggerType.orthodox_easter, "EASTER"),
            (TriggerType.custom_date, "TMPL"),
        ],
    )
    def test_prefix_per_trigger(self, trigger, prefix):
        assert build_coupon_code(trigger, "cm1xyzabc123", 2025) == f"{prefix}-ABC123-2025"

    def test_user_suffix_is_last_six_uppercased(self):
        assert build_coupon_code(TriggerType.birthday, "ckq9f00d7e4b", 2026) == "BDAY-0D7E4B-2026"

    def test_short_user_id(self):
        assert build_coupon_code(TriggerType.christmas, "ab1", 2025) == "XMAS-AB1-2025"

    def test_test_send_suffix(self):
        assert build_coupon_code(TriggerType.birthday, "abc123", 2025, test=True) == "BDAY-ABC123-2025T"

    def test_deterministic(self):
        first = build_coupon_code(TriggerType.new_year, "user-00aa11", 2025)
        second = build_coupon_code(TriggerType.new_year, "user-00aa11", 2025)
        assert first == second == "NEWYEAR-00AA11-2025"


class TestToDecimal:
    def test_valid_values(self):
        assert to_decimal("12.5") == Decimal("12.5")
        assert to_decimal(10) == Decimal("10")
        assert to_decimal(Decimal("3.30")) == Decimal("3.30")

    @pytest.mark.parametrize("value", [None, "", "abc", "NaN", float("nan"), float("inf"), "Infinity", True])
    def test_invalid_values_become_none(self, value):
        assert to_decimal(value) is None


class TestComputeExpiry:
    def test_duration_mode(self):
        assert compute_expiry(_template(coupon_duration=14), NOW) == NOW + timedelta(days=14)

    def test_duration_defaults_to_30_days(self):
        assert compute_expiry(_template(coupon_duration=None), NOW) == NOW + timedelta(days=30)

    def test_fixed_date_mode(self):
        fixed = datetime(2025, 12, 31, 23, 59)
        template = _template(coupon_expiry_mode="date", coupon_expires_at=fixed)
        assert compute_expiry(template, NOW) == fixed

    def test_date_mode_without_date_falls_back_to_duration(self):
        template = _template(coupon_expiry_mode="date", coupon_expires_at=None, coupon_duration=7)
        assert compute_expiry(template, NOW) == NOW + timedelta(days=7)


class TestProvisionCoupon:
    def test_creates_new_coupon(self, db_session):
        template = _template(coupon_product_ids=["p1", "p2"], coupon_per_user=2)
        provisioned = provision_coupon(db_session, template, "user0000abc123", NOW)
        db_session.commit()

        coupon = db_session.query(Coupon).one()
        assert provisioned.created is True
        assert coupon.code == "BDAY-ABC123-2025"
        assert coupon.max_uses == 1
        assert coupon.per_user_limit == 2
        assert coupon.product_ids == ["p1", "p2"]
        assert coupon.show_on_product is False
        assert coupon.active is True
        assert coupon.expires_at == NOW + timedelta(days=30)
        assert provisioned.value_label == "10%"
        assert provisioned.expires_label == "09/04/2025"

    def test_refreshes_existing_coupon_and_keeps_usage(self, db_session):
        db_session.add(
            Coupon(
                code="BDAY-ABC123-2025",
                type="percentage",
                value=Decimal("5"),
                max_uses=1,
                used_count=1,
                per_user_limit=1,
                product_ids=[],
                expires_at=NOW - timedelta(days=1),
            )
        )
        db_session.commit()

        template = _template(
            coupon_type="fixed",
            coupon_value=Decimal("20"),
            coupon_currency="BGN",
            coupon_min_purchase=Decimal("50"),
            coupon_allow_on_sale=True,
        )
        provisioned = provision_coupon(db_session, template, "user0000abc123", NOW)
        db_session.commit()

        coupon = db_session.query(Coupon).one()
        assert provisioned.created is False
        assert coupon.type == "fixed"
        assert coupon.value == Decimal("20")
        assert coupon.currency == "BGN"
        assert coupon.min_purchase == Decimal("50")
        assert coupon.allow_on_sale is True
        assert coupon.used_count == 1
        assert coupon.expires_at == NOW + timedelta(days=30)
        assert provisioned.value_label == "20 BGN"

    def test_same_user_and_year_never_duplicates(self, db_session):
        first = provision_coupon(db_session, _template(), "user0000abc123", NOW)
        db_session.commit()
        second = provision_coupon(
            db_session, _template(name="Birthday 2"), "user0000abc123", NOW + timedelta(hours=1)
        )
        db_session.commit()

        assert first.coupon.code == second.coupon.code
        assert second.created is False
        assert db_session.query(Coupon).count() == 1

    def test_test_send_code_does_not_collide(self, db_session):
        provision_coupon(db_session, _template(), "user0000abc123", NOW)
        provision_coupon(db_session, _template(), "user0000abc123", NOW, test=True)
        db_session.commit()

        codes = {c.code for c in db_session.query(Coupon).all()}
        assert codes == {"BDAY-ABC123-2025", "BDAY-ABC123-2025T"}

    def test_unparsable_min_purchase_stored_as_null(self, db_session):
        template = _template()
        template.coupon_min_purchase = "not a number"
        provision_coupon(db_session, template, "user0000abc123", NOW)
        db_session.commit()

        assert db_session.query(Coupon).one().min_purchase is None

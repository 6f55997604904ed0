from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from occasions.db.database import Base
from occasions.models import NotificationTemplate, TriggerType, User
from occasions.triggers.matcher import (
    birthday_matches,
    event_matches,
    find_matching_users,
    is_leap_year,
)


@pytest.fixture
def db_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    Base.metadata.drop_all(engine)


@pytest.fixture
def users(db_session):
    leap = User(id="u-leap", email="leap@example.com", name="Leap", birth_date=date(2000, 2, 29))
    march = User(id="u-march", email="march@example.com", name="March", birth_date=date(1985, 3, 1))
    nobday = User(id="u-none", email="none@example.com", name="Nobody")
    db_session.add_all([leap, march, nobday])
    db_session.commit()
    return {"leap": leap, "march": march, "none": nobday}


def _template(trigger, **kwargs):
    return NotificationTemplate(
        name=f"{trigger.value} template",
        trigger=trigger,
        title_bg="t",
        title_en="t",
        title_es="t",
        message_bg="m",
        message_en="m",
        message_es="m",
        **kwargs,
    )


def test_is_leap_year():
    assert is_leap_year(2024)
    assert is_leap_year(2000)
    assert not is_leap_year(1900)
    assert not is_leap_year(2025)


class TestBirthdayMatches:
    def test_same_month_and_day(self):
        assert birthday_matches(date(1990, 7, 14), date(2025, 7, 14))

    def test_different_day(self):
        assert not birthday_matches(date(1990, 7, 14), date(2025, 7, 15))

    def test_leap_birthday_on_feb_28_of_non_leap_year(self):
        assert birthday_matches(date(2000, 2, 29), date(2025, 2, 28))

    def test_leap_birthday_not_on_mar_1(self):
        assert not birthday_matches(date(2000, 2, 29), date(2025, 3, 1))

    def test_leap_birthday_on_feb_29_of_leap_year(self):
        assert birthday_matches(date(2000, 2, 29), date(2024, 2, 29))
        assert not birthday_matches(date(2000, 2, 29), date(2024, 2, 28))

    def test_feb_28_birthday_unaffected(self):
        assert birthday_matches(date(1999, 2, 28), date(2025, 2, 28))
        assert not birthday_matches(date(1999, 2, 28), date(2024, 2, 29))


class TestEventMatches:
    def test_christmas(self):
        assert event_matches(TriggerType.christmas, date(2025, 12, 25))
        assert not event_matches(TriggerType.christmas, date(2025, 12, 24))

    def test_new_year(self):
        assert event_matches(TriggerType.new_year, date(2026, 1, 1))
        assert not event_matches(TriggerType.new_year, date(2025, 12, 31))

    def test_orthodox_easter(self):
        assert event_matches(TriggerType.orthodox_easter, date(2025, 4, 20))
        # Western Easter 2025 falls on the same day; 2024 differs
        assert event_matches(TriggerType.orthodox_easter, date(2024, 5, 5))
        assert not event_matches(TriggerType.orthodox_easter, date(2024, 3, 31))

    def test_custom_date(self):
        assert event_matches(TriggerType.custom_date, date(2025, 6, 1), 6, 1)
        assert not event_matches(TriggerType.custom_date, date(2025, 6, 2), 6, 1)

    def test_custom_date_without_month_or_day(self):
        assert not event_matches(TriggerType.custom_date, date(2025, 6, 1), None, 1)
        assert not event_matches(TriggerType.custom_date, date(2025, 6, 1), 6, None)

    def test_birthday_is_not_a_calendar_wide_event(self):
        assert not event_matches(TriggerType.birthday, date(2025, 6, 1))


class TestFindMatchingUsers:
    def test_birthday_leap_fallback(self, db_session, users):
        template = _template(TriggerType.birthday)
        matched = find_matching_users(db_session, template, date(2025, 2, 28))
        assert [u.id for u in matched] == ["u-leap"]

    def test_birthday_mar_1_excludes_leap_user(self, db_session, users):
        template = _template(TriggerType.birthday)
        matched = find_matching_users(db_session, template, date(2025, 3, 1))
        assert [u.id for u in matched] == ["u-march"]

    def test_users_without_birth_date_never_match_birthday(self, db_session, users):
        template = _template(TriggerType.birthday)
        for day in (date(2025, 2, 28), date(2025, 3, 1), date(2025, 12, 25)):
            ids = {u.id for u in find_matching_users(db_session, template, day)}
            assert "u-none" not in ids

    def test_holiday_returns_all_users(self, db_session, users):
        template = _template(TriggerType.christmas)
        matched = find_matching_users(db_session, template, date(2025, 12, 25))
        assert {u.id for u in matched} == {"u-leap", "u-march", "u-none"}

    def test_holiday_on_other_day_returns_nobody(self, db_session, users):
        template = _template(TriggerType.new_year)
        assert find_matching_users(db_session, template, date(2025, 12, 25)) == []

    def test_custom_date_returns_all_users(self, db_session, users):
        template = _template(TriggerType.custom_date, custom_month=9, custom_day=15)
        matched = find_matching_users(db_session, template, date(2025, 9, 15))
        assert len(matched) == 3

    def test_malformed_custom_date_returns_nobody(self, db_session, users):
        template = _template(TriggerType.custom_date, custom_month=9)
        assert find_matching_users(db_session, template, date(2025, 9, 15)) == []

    def test_shift_then_match_across_month_boundary(self, db_session, users):
        """Leap birthday reached from a shifted date: Feb 27 + 1 day."""
        template = _template(TriggerType.birthday, days_before=1)
        today = datetime(2025, 2, 27).date()
        event_date = today + timedelta(days=template.days_before)
        matched = find_matching_users(db_session, template, event_date)
        assert [u.id for u in matched] == ["u-leap"]

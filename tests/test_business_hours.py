from datetime import datetime, timedelta, timezone

import pytest

from vetclinic.core.config import Settings
from vetclinic.services.business_hours import BusinessHours, validate_slot
from tests.conftest import SUNDAY, TUESDAY


@pytest.mark.parametrize("hour", range(24))
def test_closed_day_rejected_regardless_of_hour(hours, hour):
    reason = validate_slot(SUNDAY.replace(hour=hour), hours)
    assert reason == "Cannot schedule on Sundays: the clinic is closed on this day."


@pytest.mark.parametrize("hour", [0, 5, 8, 18, 19, 23])
def test_outside_operating_hours_names_the_hour(hours, hour):
    reason = validate_slot(TUESDAY.replace(hour=hour), hours)
    assert reason is not None
    assert "outside operating hours" in reason
    assert f"at {hour}:00" in reason


@pytest.mark.parametrize("hour", range(9, 18))
def test_open_hours_accepted(hours, hour):
    assert validate_slot(TUESDAY.replace(hour=hour), hours) is None


def test_window_is_closed_open(hours):
    assert validate_slot(TUESDAY.replace(hour=9, minute=0), hours) is None
    assert validate_slot(TUESDAY.replace(hour=17, minute=59), hours) is None
    assert validate_slot(TUESDAY.replace(hour=8, minute=59), hours) is not None
    assert validate_slot(TUESDAY.replace(hour=18, minute=0), hours) is not None


def test_every_weekday_but_sunday_is_open(hours):
    monday = TUESDAY - timedelta(days=1)
    for offset in range(6):
        assert validate_slot((monday + timedelta(days=offset)).replace(hour=10), hours) is None


def test_aware_time_uses_clinic_wall_clock(hours):
    # 12:00 UTC is 09:00 in Sao Paulo (UTC-3)
    candidate = datetime(2026, 10, 20, 12, 0, tzinfo=timezone.utc)
    assert validate_slot(candidate, hours) is None
    # 21:00 UTC is 18:00 local: closed
    late = datetime(2026, 10, 20, 21, 0, tzinfo=timezone.utc)
    assert "at 18:00" in validate_slot(late, hours)


def test_aware_time_can_shift_onto_closed_day(hours):
    # Monday 01:00 UTC is Sunday 22:00 local
    candidate = datetime(2026, 10, 26, 1, 0, tzinfo=timezone.utc)
    assert validate_slot(candidate, hours) == hours.closed_day_reason()


def test_slot_hours(hours):
    assert hours.slot_hours() == [9, 10, 11, 12, 13, 14, 15, 16, 17]


def test_from_settings():
    s = Settings(
        database_url="sqlite://",
        clinic_open_hour=8,
        clinic_close_hour=12,
        clinic_closed_weekday=0,
        clinic_timezone="UTC",
    )
    h = BusinessHours.from_settings(s)
    assert h.slot_hours() == [8, 9, 10, 11]
    assert h.closed_day_reason() == "Cannot schedule on Mondays: the clinic is closed on this day."

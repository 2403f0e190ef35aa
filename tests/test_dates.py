# tests/test_dates.py

from datetime import date, datetime, timezone

from senior_strength.services.dates import (
    local_today, minutes_from_seconds, parse_day, shift_months, shift_years,
)


def test_minutes_round_half_up():
    assert minutes_from_seconds(0) == 0
    assert minutes_from_seconds(29) == 0
    assert minutes_from_seconds(30) == 1
    assert minutes_from_seconds(90) == 2
    assert minutes_from_seconds(150) == 3
    assert minutes_from_seconds(210) == 4
    assert minutes_from_seconds(-60) == 0


def test_shift_months_clamps_day():
    assert shift_months(date(2024, 3, 31), -1) == date(2024, 2, 29)
    assert shift_months(date(2023, 3, 31), -1) == date(2023, 2, 28)
    assert shift_months(date(2024, 1, 15), -1) == date(2023, 12, 15)
    assert shift_years(date(2024, 2, 29), -1) == date(2023, 2, 28)


def test_parse_day_accepts_several_shapes():
    assert parse_day("2024-05-06") == date(2024, 5, 6)
    assert parse_day("2024-05-06T23:10:00Z") == date(2024, 5, 6)
    assert parse_day(datetime(2024, 5, 6, 12, 0)) == date(2024, 5, 6)
    assert parse_day("garbage") is None
    assert parse_day(None) is None


def test_local_today_uses_user_timezone():
    now = datetime(2024, 5, 6, 2, 30, tzinfo=timezone.utc)
    assert local_today("UTC", now=now) == date(2024, 5, 6)
    # 02:30 UTC sigue siendo el día anterior en Nueva York
    assert local_today("America/New_York", now=now) == date(2024, 5, 5)
    # zona desconocida -> UTC
    assert local_today("Mars/Olympus", now=now) == date(2024, 5, 6)

from datetime import datetime

import pytest
import pytz

from piedmont_availability import config, dates


def test_today_uses_pacific_time():
    # 05:00 UTC on June 2nd is still June 1st in California
    now = pytz.utc.localize(datetime(2024, 6, 2, 5, 0))
    assert dates.today(now=now) == "2024-06-01"


def test_today_accepts_naive_utc():
    assert dates.today(now=datetime(2024, 6, 2, 5, 0)) == "2024-06-01"


def test_date_plus_days():
    now = pytz.utc.localize(datetime(2024, 12, 31, 20, 0))
    assert dates.date_plus_days(1, now=now) == "2025-01-01"
    assert dates.date_plus_days(30, now=now) == "2025-01-30"


def test_day_bounds_follow_daylight_saving():
    assert dates.day_bounds("2024-06-01") == ("2024-06-01T00:00:00-07:00", "2024-06-01T23:59:00-07:00")
    assert dates.day_bounds("2024-01-15") == ("2024-01-15T00:00:00-08:00", "2024-01-15T23:59:00-08:00")


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, config.DEFAULT_DAYS),
        ("", config.DEFAULT_DAYS),
        ("abc", config.DEFAULT_DAYS),
        ("7", 7),
        (0, 1),
        (-5, 1),
        (61, 60),
        ("1000", 60),
    ],
)
def test_clamp_days(value, expected):
    assert dates.clamp_days(value) == expected

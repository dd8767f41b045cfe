# tests/test_dates.py
from datetime import date, datetime, timezone

import pytest

from naga_health.utils.dates import calculate_age, parse_timestamp


@pytest.mark.parametrize(
    "value",
    [
        "2024-06-01T09:00:00.000Z",
        "2024-06-01T09:00:00+00:00",
        "2024-06-01T09:00:00",
        "2024-06-01T17:00:00+08:00",
    ],
)
def test_parse_timestamp_is_aware(value):
    assert parse_timestamp(value) == datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


def test_parse_timestamp_rejects_garbage():
    with pytest.raises(ValueError):
        parse_timestamp("yesterday")


def test_calculate_age():
    assert calculate_age("1990-03-15", today=date(2024, 3, 14)) == 33
    assert calculate_age("1990-03-15", today=date(2024, 3, 15)) == 34
    assert calculate_age("not a date") is None

from datetime import date, datetime, timedelta, timezone

import pytest

from votestreak.core.errors import InvalidDateError, ValidationError
from votestreak.features.votes.dates import month_bounds, normalize_day, parse_day, parse_moment


def test_date_only_maps_to_midnight_utc():
    assert parse_moment("2025-03-18") == datetime(2025, 3, 18, tzinfo=timezone.utc)


def test_zulu_suffix_accepted():
    assert parse_moment("2025-03-18T10:15:00Z") == datetime(2025, 3, 18, 10, 15, tzinfo=timezone.utc)


def test_naive_datetime_taken_as_utc():
    assert parse_moment("2025-03-18T23:59:00").tzinfo == timezone.utc


def test_offset_converted_to_utc_day():
    # 01:00 at +02:00 is still the previous day in UTC
    assert parse_day("2025-03-18T01:00:00+02:00", "date") == date(2025, 3, 17)


def test_blank_and_none_are_absent():
    assert parse_moment(None) is None
    assert parse_moment("   ") is None


@pytest.mark.parametrize(
    "value",
    [
        "not-a-date",
        "2025-13-01",
        "18/03/2025",
        "2025-02-30",
        "9999-12-31T23:00:00-05:00",
        "0001-01-01T00:00:00+01:00",
    ],
)
def test_unparsable_dates_raise(value):
    with pytest.raises(InvalidDateError) as exc:
        parse_moment(value, "startDate")
    assert "startDate" in exc.value.message
    assert isinstance(exc.value, ValidationError)
    assert exc.value.status_code == 400


def test_normalize_day_of_aware_datetime():
    moment = datetime(2025, 3, 18, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert normalize_day(moment) == date(2025, 3, 19)


def test_month_bounds():
    assert month_bounds(date(2025, 3, 18)) == (date(2025, 3, 1), date(2025, 3, 31))
    assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(date(2025, 12, 31)) == (date(2025, 12, 1), date(2025, 12, 31))

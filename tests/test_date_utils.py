from datetime import date, datetime, timedelta, timezone

from swapapi.utils.date_utils import (
    derive_shift_date,
    minutes_between,
    utc_day_bounds,
)

UTC = timezone.utc
ICT = timezone(timedelta(hours=7))


class TestDeriveShiftDate:
    def test_uses_utc_date_of_start(self):
        assert derive_shift_date(datetime(2025, 3, 1, 23, 30, tzinfo=UTC)) == date(2025, 3, 1)

    def test_converts_offset_aware_start_to_utc(self):
        # 06:00 at UTC+7 is 23:00 UTC on the previous day
        assert derive_shift_date(datetime(2025, 3, 2, 6, 0, tzinfo=ICT)) == date(2025, 3, 1)

    def test_naive_start_is_treated_as_utc(self):
        assert derive_shift_date(datetime(2025, 3, 2, 0, 0)) == date(2025, 3, 2)


def test_utc_day_bounds():
    start, end = utc_day_bounds(date(2025, 3, 1))
    assert start == datetime(2025, 3, 1, tzinfo=UTC)
    assert end - start == timedelta(days=1)


class TestMinutesBetween:
    def test_exact_minutes(self):
        start = datetime(2025, 3, 1, 10, 0, tzinfo=UTC)
        assert minutes_between(start, start + timedelta(minutes=6)) == 6

    def test_rounds_to_nearest_minute(self):
        start = datetime(2025, 3, 1, 10, 0, tzinfo=UTC)
        assert minutes_between(start, start + timedelta(minutes=6, seconds=29)) == 6
        assert minutes_between(start, start + timedelta(minutes=6, seconds=30)) == 7
        assert minutes_between(start, start + timedelta(seconds=30)) == 1

    def test_zero_length(self):
        start = datetime(2025, 3, 1, 10, 0, tzinfo=UTC)
        assert minutes_between(start, start) == 0

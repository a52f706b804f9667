"""
UTC day-boundary behaviour of reporting windows and period keys.
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.components.analytics import period_key, resolve_window
from src.components.interactions._impl import utc_day_bounds


class TestDayBoundaries:
    def test_just_before_midnight_still_today(self) -> None:
        now = datetime(2025, 3, 10, 23, 59, 59, tzinfo=UTC)

        window = resolve_window(None, now)

        assert window.start == datetime(2025, 3, 10, tzinfo=UTC)
        assert window.start <= now <= window.end

    def test_midnight_starts_new_day(self) -> None:
        window = resolve_window(None, datetime(2025, 3, 11, tzinfo=UTC))

        assert window.start == datetime(2025, 3, 11, tzinfo=UTC)

    def test_offset_clock_is_converted_to_utc(self) -> None:
        # 01:30 in UTC+2 is still the previous UTC day
        sast = timezone(timedelta(hours=2))
        window = resolve_window(None, datetime(2025, 3, 11, 1, 30, tzinfo=sast))

        assert window.start == datetime(2025, 3, 10, tzinfo=UTC)

    def test_naive_now_treated_as_utc(self) -> None:
        window = resolve_window(None, datetime(2025, 3, 10, 8, 0))

        assert window.start == datetime(2025, 3, 10, tzinfo=UTC)

    def test_weekly_crosses_month_boundary(self) -> None:
        window = resolve_window("weekly", datetime(2025, 3, 2, 9, 0, tzinfo=UTC))

        assert window.start == datetime(2025, 2, 23, tzinfo=UTC)

    def test_monthly_crosses_year_boundary(self) -> None:
        window = resolve_window("monthly", datetime(2025, 1, 10, tzinfo=UTC))

        assert window.start == datetime(2024, 12, 11, tzinfo=UTC)
        assert window.end == datetime(2025, 1, 10, 23, 59, 59, 999000, tzinfo=UTC)

    def test_yearly_over_leap_day(self) -> None:
        window = resolve_window("yearly", datetime(2024, 3, 1, tzinfo=UTC))

        assert window.start == datetime(2023, 3, 2, tzinfo=UTC)

    def test_view_day_bounds_are_half_open(self) -> None:
        start, end = utc_day_bounds(datetime(2025, 12, 31, 18, 0, tzinfo=UTC))

        assert start == datetime(2025, 12, 31, tzinfo=UTC)
        assert end == datetime(2026, 1, 1, tzinfo=UTC)


class TestPeriodKeys:
    TS = datetime(2025, 3, 10, 14, 45, 12, tzinfo=UTC)

    @pytest.mark.parametrize(
        ("granularity", "expected"),
        [
            ("hour", "2025-03-10 14:00:00"),
            ("day", "2025-03-10"),
            ("week", "2025-10"),
            ("month", "2025-03"),
        ],
    )
    def test_keys(self, granularity: str, expected: str) -> None:
        assert period_key(self.TS, granularity) == expected  # type: ignore[arg-type]

    def test_keys_sort_chronologically_across_years(self) -> None:
        keys = [
            period_key(datetime(2024, 12, 31, tzinfo=UTC), "day"),
            period_key(datetime(2025, 1, 1, tzinfo=UTC), "day"),
        ]

        assert keys == sorted(keys)

    def test_unknown_granularity(self) -> None:
        with pytest.raises(ValueError):
            period_key(self.TS, "minute")  # type: ignore[arg-type]

import datetime as dt

import pytest

from budget_tracker.timeline import (
    Interval,
    TimelineResolutionError,
    WeeklyCalendarPattern,
    as_date,
    month_days,
    normalize_timeline,
    resolve_interval,
    try_resolve_interval,
)

D = dt.date


def test_daily_is_single_day():
    interval = resolve_interval("daily", D(2024, 3, 15))
    assert interval == Interval(D(2024, 3, 15), D(2024, 3, 16))
    assert D(2024, 3, 15) in interval
    assert D(2024, 3, 16) not in interval
    assert len(interval) == 1


def test_daily_on_last_day_of_year_rolls_over():
    interval = resolve_interval("daily", D(2023, 12, 31))
    assert interval.end == D(2024, 1, 1)


def test_weekly_window_is_trailing_seven_days():
    interval = resolve_interval("weekly", D(2024, 3, 2))
    assert interval.start == D(2024, 2, 25)
    assert interval.end == D(2024, 3, 3)
    assert len(interval) == 7


def test_weekly_window_crosses_year_boundary():
    interval = resolve_interval("weekly", D(2024, 1, 3))
    assert interval.start == D(2023, 12, 28)
    assert interval.end == D(2024, 1, 4)


def test_monthly_is_calendar_month():
    assert resolve_interval("monthly", D(2024, 1, 15)) == Interval(D(2024, 1, 1), D(2024, 2, 1))


def test_monthly_rolls_december_into_january():
    assert resolve_interval("monthly", D(2024, 12, 31)) == Interval(D(2024, 12, 1), D(2025, 1, 1))


@pytest.mark.parametrize("timeline", [None, "", "fortnightly", 42])
def test_unknown_or_missing_timeline_falls_back_to_monthly(timeline):
    assert resolve_interval(timeline, D(2024, 2, 10)) == Interval(D(2024, 2, 1), D(2024, 3, 1))


def test_timeline_matching_is_case_insensitive():
    assert normalize_timeline(" Weekly ") == "weekly"
    assert resolve_interval("DAILY", D(2024, 5, 5)) == Interval(D(2024, 5, 5), D(2024, 5, 6))


def test_custom_timeline_is_not_substring_matched():
    assert normalize_timeline("customized") == "monthly"


def test_yearly_covers_reference_year():
    assert resolve_interval("yearly", D(2024, 7, 4)) == Interval(D(2024, 1, 1), D(2025, 1, 1))


def test_custom_within_past_range():
    interval = resolve_interval("custom", D(2024, 6, 1), "2024-05-01", "2024-05-10")
    assert interval == Interval(D(2024, 5, 1), D(2024, 5, 11))


def test_custom_end_is_clamped_to_reference_date():
    interval = resolve_interval("custom", D(2024, 5, 5), "2024-05-01", "2024-05-31")
    assert interval.end == D(2024, 5, 6)


def test_custom_range_in_future_is_empty():
    interval = resolve_interval("custom", D(2024, 4, 1), "2024-05-01", "2024-05-31")
    assert interval.start == interval.end
    assert len(interval) == 0


def test_custom_accepts_iso_timestamps():
    interval = resolve_interval("custom", D(2024, 6, 1), "2024-05-01T00:00:00.000Z", "2024-05-02T00:00:00Z")
    assert interval == Interval(D(2024, 5, 1), D(2024, 5, 3))


@pytest.mark.parametrize("start,end", [(None, "2024-05-10"), ("2024-05-01", None), (None, None), ("", "")])
def test_custom_without_both_dates_has_no_interval(start, end):
    assert resolve_interval("custom", D(2024, 6, 1), start, end) is None


def test_custom_with_malformed_date_raises():
    with pytest.raises(TimelineResolutionError):
        resolve_interval("custom", D(2024, 6, 1), "not-a-date", "2024-05-10")


def test_custom_with_reversed_range_raises():
    with pytest.raises(TimelineResolutionError):
        resolve_interval("custom", D(2024, 6, 1), "2024-05-10", "2024-05-01")


def test_try_resolve_reports_failure_as_value():
    interval, error = try_resolve_interval("custom", D(2024, 6, 1), "2024-02-30", "2024-03-10")
    assert interval is None
    assert "2024-02-30" in error


def test_reference_datetime_drops_time():
    interval = resolve_interval("daily", dt.datetime(2024, 3, 15, 23, 59))
    assert interval.start == D(2024, 3, 15)


def test_as_date_rejects_other_types():
    with pytest.raises(TimelineResolutionError):
        as_date(20240101)


def test_month_days_uses_real_month_length():
    assert len(list(month_days(D(2024, 2, 10)))) == 29
    assert len(list(month_days(D(2023, 2, 1)))) == 28
    assert list(month_days(D(2024, 4, 1)))[-1] == D(2024, 4, 30)


def test_weekly_calendar_pattern_marks_mondays():
    mondays = list(WeeklyCalendarPattern().days_in(D(2024, 2, 1)))
    assert mondays == [D(2024, 2, 5), D(2024, 2, 12), D(2024, 2, 19), D(2024, 2, 26)]

import datetime as dt

from budget_tracker import calendar_map as cm
from budget_tracker.calendar_map import build_calendar_map, parse_month
from budget_tracker.models import Budget

D = dt.date
TODAY = D(2024, 2, 15)


def test_empty_budget_list_gives_empty_map():
    result = build_calendar_map([], "2024-02", TODAY)
    assert result.days == {}
    assert result.error is None


def test_daily_budget_covers_every_real_day():
    result = build_calendar_map([Budget(category="Food", limit=10, timeline="daily")], "2024-02", TODAY)
    assert len(result.days) == 29
    assert "2024-02-29" in result.days
    assert "2024-02-30" not in result.days
    assert all(day.count == 1 for day in result.days.values())


def test_weekly_budget_marks_mondays_only():
    result = build_calendar_map([Budget(category="Gas", limit=40, timeline="weekly")], "2024-02", TODAY)
    assert sorted(result.days) == ["2024-02-05", "2024-02-12", "2024-02-19", "2024-02-26"]


def test_monthly_and_unset_budgets_mark_first_day():
    budgets = [Budget(category="Rent", limit=1200, timeline="monthly"), Budget(category="Misc", limit=30)]
    result = build_calendar_map(budgets, "2024-03", TODAY)
    assert list(result.days) == ["2024-03-01"]
    assert result.days["2024-03-01"].count == 2
    assert result.days["2024-03-01"].total_limit == 1230


def test_yearly_budget_only_visible_in_january():
    budget = Budget(category="Insurance", limit=900, timeline="yearly")
    assert list(build_calendar_map([budget], "2024-01", TODAY).days) == ["2024-01-01"]
    assert build_calendar_map([budget], "2024-06", TODAY).days == {}


def test_custom_range_is_walked_across_months_up_to_today():
    budget = Budget(category="Trip", limit=300, timeline="custom", start_date="2024-01-30", end_date="2024-02-20")
    result = build_calendar_map([budget], "2024-02", TODAY)
    keys = sorted(result.days)
    assert keys[0] == "2024-01-30"
    assert keys[-1] == "2024-02-15"
    assert len(keys) == 17


def test_overlapping_budgets_are_summed_per_day():
    budgets = [
        Budget(category="Food", limit=10, timeline="daily"),
        Budget(category="Gas", limit=40, timeline="weekly"),
        Budget(category="Rent", limit=1000, timeline="monthly"),
    ]
    result = build_calendar_map(budgets, "2024-01", TODAY)
    first = result.days["2024-01-01"]  # a Monday
    assert first.count == 3
    assert first.total_limit == 1050
    assert result.days["2024-01-02"].count == 1


def test_malformed_budget_does_not_suppress_others():
    budgets = [
        Budget(id=1, category="Trip", limit=100, timeline="custom", start_date="nope", end_date="2024-02-10"),
        Budget(id=2, category="Food", limit=10, timeline="daily"),
        Budget(id=3, category="Odd", limit="lots", timeline="monthly"),
    ]
    result = build_calendar_map(budgets, "2024-02", TODAY)
    assert len(result.days) == 29
    assert result.days["2024-02-01"].count == 1
    assert [f.budget.id for f in result.failures] == [1, 3]
    assert result.error is None


def test_custom_without_dates_is_silently_skipped():
    result = build_calendar_map([Budget(category="Trip", limit=5, timeline="custom")], "2024-02", TODAY)
    assert result.days == {}
    assert result.failures == []


def test_total_failure_degrades_to_empty_map(monkeypatch):
    def explode(*_args):
        raise RuntimeError("boom")

    monkeypatch.setattr(cm, "day_key", explode)
    result = build_calendar_map([Budget(category="Food", limit=10, timeline="monthly")], "2024-02", TODAY)
    assert result.days == {}
    assert result.error == "boom"


def test_bad_month_degrades_to_error_state():
    result = build_calendar_map([Budget(category="Food", limit=10)], "2024-13", TODAY)
    assert result.days == {}
    assert result.error


def test_parse_month_accepts_dates_and_tags():
    assert parse_month("2024-07") == D(2024, 7, 1)
    assert parse_month(D(2024, 7, 19)) == D(2024, 7, 1)
    assert parse_month(dt.datetime(2024, 7, 19, 8, 0)) == D(2024, 7, 1)


def test_to_dict_shape():
    result = build_calendar_map([Budget(id=7, category="Rent", limit=1000)], "2024-02", TODAY)
    data = result.to_dict()
    assert data["month"] == "2024-02"
    assert data["days"]["2024-02-01"]["count"] == 1
    assert data["days"]["2024-02-01"]["totalLimit"] == 1000
    assert data["days"]["2024-02-01"]["budgets"][0]["id"] == 7

import datetime as dt

from budget_tracker.analytics import monthly_totals, spending_by_category, spending_trend, summarize_totals
from budget_tracker.models import Transaction


def sample_txns():
    return [
        Transaction(date=dt.date(2023, 11, 30), amount=40, category="Food", type="expense"),
        Transaction(date=dt.date(2023, 12, 1), amount=2000, category="Salary", type="income"),
        Transaction(date=dt.date(2023, 12, 3), amount=900, category="Rent", type="expense"),
        Transaction(date=dt.date(2024, 1, 2), amount=60.25, category="Food", type="expense"),
    ]


def test_summarize_totals():
    assert summarize_totals(sample_txns()) == {"income": 2000, "expense": 1000.25, "balance": 999.75}


def test_summarize_totals_empty():
    assert summarize_totals([]) == {"income": 0, "expense": 0, "balance": 0}


def test_spending_by_category_sorted_descending():
    result = spending_by_category(sample_txns())
    assert list(result) == ["Rent", "Food"]
    assert result["Food"] == 100.25


def test_monthly_totals_per_month():
    months = monthly_totals(sample_txns())
    assert list(months) == ["2023-11", "2023-12", "2024-01"]
    assert months["2023-12"] == {"income": 2000, "expense": 900, "net": 1100}


def test_spending_trend_fills_missing_months():
    trend = spending_trend(sample_txns(), dt.date(2024, 2, 10), months=4)
    assert trend == {"2023-11": 40, "2023-12": 900, "2024-01": 60.25, "2024-02": 0}

"""Dashboard aggregates computed from a user's transactions."""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from typing import Dict, Iterable

from .models import EXPENSE, INCOME, Transaction, month_tag


def summarize_totals(txns: Iterable[Transaction]) -> Dict[str, float]:
    txns = list(txns)
    income = sum(t.amount for t in txns if t.type == INCOME)
    expense = sum(t.amount for t in txns if t.type == EXPENSE)
    return {"income": round(income, 2), "expense": round(expense, 2), "balance": round(income - expense, 2)}


def spending_by_category(txns: Iterable[Transaction]) -> Dict[str, float]:
    totals: Dict[str, float] = defaultdict(float)
    for t in txns:
        if t.type == EXPENSE:
            totals[t.category or "Other"] += t.amount
    return {k: round(v, 2) for k, v in sorted(totals.items(), key=lambda kv: kv[1], reverse=True)}


def monthly_totals(txns: Iterable[Transaction]) -> Dict[str, Dict[str, float]]:
    months: Dict[str, Dict[str, float]] = defaultdict(lambda: {"income": 0.0, "expense": 0.0, "net": 0.0})
    for t in txns:
        m = month_tag(t.date)
        if t.type == INCOME:
            months[m]["income"] += t.amount
        else:
            months[m]["expense"] += t.amount
        months[m]["net"] = months[m]["income"] - months[m]["expense"]
    # Round
    return {m: {k: round(v, 2) for k, v in vals.items()} for m, vals in sorted(months.items())}


def spending_trend(txns: Iterable[Transaction], end: dt.date, months: int = 6) -> Dict[str, float]:
    """Expense total per month for the ``months`` months ending with ``end``'s month."""
    year, month = end.year, end.month
    keys = []
    for _ in range(months):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    trend = {key: 0.0 for key in reversed(keys)}
    for key, vals in monthly_totals(txns).items():
        if key in trend:
            trend[key] = vals["expense"]
    return trend

"""Expand budgets into the days they are active on for one displayed month."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from .aggregation import BudgetFailure
from .models import Budget
from .timeline import (
    CUSTOM,
    DAILY,
    WEEKLY,
    WEEKLY_PATTERN,
    YEARLY,
    DateLike,
    as_date,
    day_key,
    month_days,
    month_start,
    normalize_timeline,
    resolve_interval,
)

logger = logging.getLogger(__name__)


@dataclass
class CalendarDay:
    budgets: List[Budget] = field(default_factory=list)
    total_limit: float = 0.0

    @property
    def count(self) -> int:
        return len(self.budgets)

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "totalLimit": round(self.total_limit, 2),
            "budgets": [b.to_dict() for b in self.budgets],
        }


@dataclass
class CalendarMap:
    month: dt.date
    days: Dict[str, CalendarDay] = field(default_factory=dict)
    failures: List[BudgetFailure] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "month": self.month.strftime("%Y-%m"),
            "days": {key: day.to_dict() for key, day in sorted(self.days.items())},
            "failures": [f.to_dict() for f in self.failures],
            "error": self.error,
        }


def parse_month(value: Union[DateLike, None]) -> dt.date:
    """First day of the month named by a date, datetime or ``YYYY-MM`` string."""
    if isinstance(value, str) and len(value.strip()) == 7:
        return as_date(value.strip() + "-01")
    return month_start(as_date(value))


def active_days(budget: Budget, displayed_month: dt.date, reference_date: dt.date) -> List[dt.date]:
    """Days on which ``budget`` shows up in the calendar for ``displayed_month``."""
    kind = normalize_timeline(budget.timeline)
    if kind == DAILY:
        return list(month_days(displayed_month))
    if kind == WEEKLY:
        return list(WEEKLY_PATTERN.days_in(displayed_month))
    if kind == YEARLY:
        return [displayed_month] if displayed_month.month == 1 else []
    if kind == CUSTOM:
        interval = resolve_interval(CUSTOM, reference_date, budget.start_date, budget.end_date)
        return list(interval.days()) if interval else []
    return [displayed_month]


def build_calendar_map(
    budgets: Iterable[Budget],
    displayed_month: DateLike,
    reference_date: DateLike,
) -> CalendarMap:
    """Map every active day-key to the budgets active on it.

    Per-budget problems land in ``failures`` and do not stop the others. Any
    other fault yields an empty map with ``error`` set.
    """

    try:
        month = parse_month(displayed_month)
        today = as_date(reference_date)
    except ValueError as exc:
        logger.warning("Cannot build calendar for %r: %s", displayed_month, exc)
        return CalendarMap(month=month_start(dt.date.min), error=str(exc))

    result = CalendarMap(month=month)
    try:
        for budget in budgets:
            try:
                limit = float(budget.limit or 0)
                days = active_days(budget, month, today)
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping budget %s (%s) in calendar: %s", budget.id, budget.category, exc)
                result.failures.append(BudgetFailure(budget, str(exc)))
                continue
            for day in days:
                entry = result.days.setdefault(day_key(day), CalendarDay())
                entry.budgets.append(budget)
                entry.total_limit += limit
    except Exception as exc:  # noqa: BLE001
        logger.exception("Calendar expansion failed for %s", month.strftime("%Y-%m"))
        return CalendarMap(month=month, error=str(exc))
    return result

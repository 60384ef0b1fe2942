"""Spend aggregation for budgets.

``spent`` is never stored. It is recomputed on every read by resolving the
budget's timeline to an interval and asking the transaction store for the
expense total of the budget's category inside that interval.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol

from .models import Budget
from .timeline import DateLike, Interval, try_resolve_interval

logger = logging.getLogger(__name__)


class TransactionStore(Protocol):
    def sum_expenses(self, user_id: int, category: str, start: dt.date, end: dt.date) -> float:
        """Sum of expense amounts for ``category`` dated in ``[start, end)``."""


@dataclass
class BudgetFailure:
    budget: Budget
    reason: str

    def to_dict(self) -> dict:
        return {"id": self.budget.id, "category": self.budget.category, "reason": self.reason}


@dataclass
class EnrichmentResult:
    budgets: List[Budget] = field(default_factory=list)
    failures: List[BudgetFailure] = field(default_factory=list)


def compute_spent(
    store: TransactionStore,
    category: str,
    user_id: int,
    interval: Optional[Interval],
) -> float:
    if interval is None or not len(interval):
        return 0.0
    total = store.sum_expenses(user_id, category, interval.start, interval.end)
    return round(float(total or 0.0), 2)


def resolve_budget_interval(budget: Budget, reference_date: DateLike):
    return try_resolve_interval(budget.timeline, reference_date, budget.start_date, budget.end_date)


def budget_spent(
    store: TransactionStore,
    budget: Budget,
    user_id: int,
    reference_date: DateLike,
) -> float:
    interval, _ = resolve_budget_interval(budget, reference_date)
    return compute_spent(store, budget.category, user_id, interval)


def enrich_budgets(
    store: TransactionStore,
    budgets: Iterable[Budget],
    user_id: int,
    reference_date: DateLike,
) -> EnrichmentResult:
    """Attach ``spent`` to every budget.

    A budget whose interval cannot be resolved keeps ``spent = 0`` and is also
    reported in ``failures``. Store errors propagate to the caller.
    """

    result = EnrichmentResult()
    for budget in budgets:
        interval, error = resolve_budget_interval(budget, reference_date)
        if error is not None:
            logger.warning("Budget %s (%s): %s", budget.id, budget.category, error)
            result.failures.append(BudgetFailure(budget, error))
        spent = compute_spent(store, budget.category, user_id, interval)
        result.budgets.append(budget.with_spent(spent))
    return result

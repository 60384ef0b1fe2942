"""Budget and transaction records shared by the store, the core and the API."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = (INCOME, EXPENSE)


def month_tag(value: dt.date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


@dataclass
class Transaction:
    date: dt.date
    amount: float  # always >= 0, direction comes from ``type``
    category: str
    type: str
    description: Optional[str] = None
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Transaction":
        return cls(
            id=row["id"],
            date=dt.date.fromisoformat(row["date"]),
            amount=float(row["amount"]),
            category=row["category"],
            type=row["type"],
            description=row["description"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "amount": round(self.amount, 2),
            "category": self.category,
            "type": self.type,
            "description": self.description,
        }


@dataclass
class Budget:
    category: str
    limit: float
    timeline: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    month: Optional[str] = None
    id: Optional[int] = None
    spent: Optional[float] = field(default=None, compare=False)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Budget":
        return cls(
            id=row["id"],
            category=row["category"],
            limit=row["limit_amount"],
            timeline=row["timeline"],
            start_date=row["start_date"],
            end_date=row["end_date"],
            month=row["month"],
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Budget":
        """Build from the JSON shape used by the API and the CLI."""
        return cls(
            id=data.get("id"),
            category=str(data.get("category") or ""),
            limit=data.get("limit", 0),
            timeline=data.get("timeline"),
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
            month=data.get("month"),
        )

    def with_spent(self, spent: float) -> "Budget":
        return replace(self, spent=spent)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "category": self.category,
            "limit": self.limit,
            "timeline": self.timeline or "monthly",
            "startDate": self.start_date,
            "endDate": self.end_date,
            "month": self.month,
        }
        if self.spent is not None:
            data["spent"] = round(self.spent, 2)
        return data

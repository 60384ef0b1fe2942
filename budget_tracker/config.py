"""Configuration utilities for the Budget Tracker.

Settings come from built-in defaults, then an optional JSON file, then
environment variables. The reference clock used for every "current" window
lives here too so that the web layer can inject a fixed one.
"""

from __future__ import annotations

import datetime as dt
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Same choices the budget form offers
DEFAULT_CATEGORIES: List[str] = [
    "Food",
    "Transport",
    "Entertainment",
    "Utilities",
    "Healthcare",
    "Shopping",
    "Other",
]

Clock = Callable[[], dt.datetime]


def system_clock() -> dt.datetime:
    return dt.datetime.now()


def fixed_clock(moment: dt.datetime | dt.date) -> Clock:
    if not isinstance(moment, dt.datetime):
        moment = dt.datetime.combine(moment, dt.time())
    return lambda: moment


@dataclass
class AppConfig:
    secret_key: str = "dev"
    database: str = str(PROJECT_ROOT / "budget_tracker.db")
    categories: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    recent_limit: int = 10

    @staticmethod
    def load(config_path: Optional[str | Path] = None) -> "AppConfig":
        """Load config from JSON if provided, then apply env overrides.

        JSON format:
        {
          "secret_key": "...",
          "database": "data/budget.db",
          "categories": ["Food", "Rent"],
          "recent_limit": 10
        }
        """

        cfg = AppConfig()

        if config_path:
            p = Path(config_path)
            if p.exists():
                with p.open("r", encoding="utf-8") as f:
                    raw = json.load(f)
                if isinstance(raw, dict):
                    if raw.get("secret_key"):
                        cfg.secret_key = str(raw["secret_key"])
                    if raw.get("database"):
                        db_path = Path(raw["database"])
                        cfg.database = str(db_path if db_path.is_absolute() else PROJECT_ROOT / db_path)
                    if isinstance(raw.get("categories"), list):
                        cfg.categories = [str(c) for c in raw["categories"] if str(c).strip()]
                    if isinstance(raw.get("recent_limit"), int) and raw["recent_limit"] > 0:
                        cfg.recent_limit = raw["recent_limit"]

        cfg.secret_key = os.getenv("BUDGET_TRACKER_SECRET_KEY", cfg.secret_key)
        cfg.database = os.getenv("BUDGET_TRACKER_DB", cfg.database)
        return cfg

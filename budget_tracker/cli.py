"""Command-line interface for the Budget Tracker.

Usage:
  python -m budget_tracker.cli serve --port 5000
  python -m budget_tracker.cli interval --timeline weekly --today 2024-01-03
  python -m budget_tracker.cli calendar --budgets budgets.json --month 2024-02
"""

from __future__ import annotations

import argparse
import datetime as dt
import json
import logging
from pathlib import Path
from typing import List, Optional

from .calendar_map import CalendarMap, build_calendar_map
from .config import AppConfig, fixed_clock
from .models import Budget
from .timeline import TIMELINES, as_date, try_resolve_interval


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Budget Tracker")
    p.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the JSON API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5000)
    serve.add_argument("--config", "-c", help="Path to JSON config")
    serve.add_argument("--today", help="Pin the reference date (YYYY-MM-DD)")
    serve.add_argument("--debug", action="store_true")

    interval = sub.add_parser("interval", help="Show the spend window for a timeline")
    interval.add_argument("--timeline", "-t", default="monthly", help=f"One of: {', '.join(TIMELINES)}")
    interval.add_argument("--today", help="Reference date (YYYY-MM-DD), default today")
    interval.add_argument("--start", help="Custom range start")
    interval.add_argument("--end", help="Custom range end")

    calendar = sub.add_parser("calendar", help="Show active budget days for a month")
    calendar.add_argument("--budgets", "-b", required=True, help="JSON file with a list of budgets")
    calendar.add_argument("--month", "-m", help="Displayed month (YYYY-MM), default this month")
    calendar.add_argument("--today", help="Reference date (YYYY-MM-DD), default today")
    return p.parse_args(argv)


def _reference_date(value: Optional[str]) -> dt.date:
    return as_date(value) if value else dt.date.today()


def load_budgets(path: str | Path) -> List[Budget]:
    with Path(path).open("r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON list of budgets")
    return [Budget.from_dict(item) for item in raw if isinstance(item, dict)]


def format_calendar(calendar_map: CalendarMap) -> str:
    lines: List[str] = [f"=== Budget Calendar {calendar_map.month.strftime('%B %Y')} ==="]
    if calendar_map.error:
        lines.append(f"Error: {calendar_map.error}")
        return "\n".join(lines)
    for key, day in sorted(calendar_map.days.items()):
        categories = ", ".join(b.category for b in day.budgets)
        lines.append(f"{key}  {day.count} budget(s)  {day.total_limit:>10.2f}  {categories}")
    if not calendar_map.days:
        lines.append("No active budgets.")
    for failure in calendar_map.failures:
        lines.append(f"Skipped {failure.budget.category}: {failure.reason}")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command == "serve":
        from .webapp import create_app

        clock = fixed_clock(as_date(args.today)) if args.today else None
        app = create_app(AppConfig.load(args.config), clock=clock)
        app.run(host=args.host, port=args.port, debug=args.debug)
        return 0

    if args.command == "interval":
        interval, error = try_resolve_interval(args.timeline, _reference_date(args.today), args.start, args.end)
        if error:
            print(f"no interval: {error}")
            return 1
        if interval is None or not len(interval):
            print("no interval")
            return 0
        last = interval.end - dt.timedelta(days=1)
        print(f"[{interval.start.isoformat()}, {interval.end.isoformat()})  {len(interval)} day(s), through {last.isoformat()}")
        return 0

    budgets = load_budgets(args.budgets)
    today = _reference_date(args.today)
    print(format_calendar(build_calendar_map(budgets, args.month or today, today)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

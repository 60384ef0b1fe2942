"""Budget timeline resolution.

Turns a budget's recurrence timeline plus a reference date ("today") into the
half-open day interval ``[start, end)`` over which spend is aggregated.

The same timeline value means two different things depending on who asks:
the spend aggregator wants a window of days, the calendar wants a pattern of
days to mark. The weekly case is the one where these disagree, so both
readings are spelled out as separate objects below.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"
YEARLY = "yearly"
CUSTOM = "custom"

TIMELINES = (DAILY, WEEKLY, MONTHLY, YEARLY, CUSTOM)
DEFAULT_TIMELINE = MONTHLY

DateLike = Union[dt.date, dt.datetime, str]

ONE_DAY = dt.timedelta(days=1)


class TimelineResolutionError(ValueError):
    """Raised when a budget's timeline cannot be turned into an interval."""


@dataclass(frozen=True)
class Interval:
    start: dt.date  # inclusive
    end: dt.date  # exclusive

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise TimelineResolutionError(f"Interval start {self.start} is after end {self.end}")

    def __contains__(self, value: dt.date) -> bool:
        return self.start <= value < self.end

    def __len__(self) -> int:
        return (self.end - self.start).days

    def days(self) -> Iterator[dt.date]:
        current = self.start
        while current < self.end:
            yield current
            current += ONE_DAY


@dataclass(frozen=True)
class WeeklyAggregationWindow:
    """Trailing window of ``length`` days ending on the reference date."""

    length: int = 7

    def interval(self, reference: dt.date) -> Interval:
        return Interval(reference - dt.timedelta(days=self.length - 1), reference + ONE_DAY)


@dataclass(frozen=True)
class WeeklyCalendarPattern:
    """Marks every occurrence of ``weekday`` (Monday = 0) in a month."""

    weekday: int = 0

    def days_in(self, month_start: dt.date) -> Iterator[dt.date]:
        for day in month_days(month_start):
            if day.weekday() == self.weekday:
                yield day


WEEKLY_WINDOW = WeeklyAggregationWindow()
WEEKLY_PATTERN = WeeklyCalendarPattern()


def normalize_timeline(value: Optional[str]) -> str:
    if not isinstance(value, str):
        return DEFAULT_TIMELINE
    key = value.strip().lower()
    return key if key in TIMELINES else DEFAULT_TIMELINE


def as_date(value: DateLike) -> dt.date:
    """Coerce a date, datetime or ISO string to a calendar date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str):
        raise TimelineResolutionError(f"Unsupported date value: {value!r}")
    text = value.strip()
    try:
        return dt.date.fromisoformat(text[:10]) if len(text) == 10 else _parse_timestamp(text)
    except ValueError as exc:
        raise TimelineResolutionError(f"Unrecognized date format: {value!r}") from exc


def _parse_timestamp(text: str) -> dt.date:
    # ``fromisoformat`` only accepts a trailing "Z" on newer interpreters
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return dt.datetime.fromisoformat(text).date()


def month_start(value: dt.date) -> dt.date:
    return dt.date(value.year, value.month, 1)


def next_month_start(value: dt.date) -> dt.date:
    if value.month == 12:
        return dt.date(value.year + 1, 1, 1)
    return dt.date(value.year, value.month + 1, 1)


def month_days(value: dt.date) -> Iterator[dt.date]:
    """Every real day of ``value``'s month."""
    return Interval(month_start(value), next_month_start(value)).days()


def day_key(value: dt.date) -> str:
    return value.isoformat()


def resolve_interval(
    timeline: Optional[str],
    reference_date: DateLike,
    custom_start: Optional[DateLike] = None,
    custom_end: Optional[DateLike] = None,
) -> Optional[Interval]:
    """Resolve the spend window for ``timeline`` relative to ``reference_date``.

    Returns ``None`` for a custom timeline that is missing either bound. Raises
    ``TimelineResolutionError`` when custom bounds are unparseable or reversed.
    Custom windows never extend past the reference date.
    """

    today = as_date(reference_date)
    kind = normalize_timeline(timeline)

    if kind == DAILY:
        return Interval(today, today + ONE_DAY)
    if kind == WEEKLY:
        return WEEKLY_WINDOW.interval(today)
    if kind == YEARLY:
        return Interval(dt.date(today.year, 1, 1), dt.date(today.year + 1, 1, 1))
    if kind == CUSTOM:
        if not custom_start or not custom_end:
            return None
        start = as_date(custom_start)
        end = as_date(custom_end)
        if start > end:
            raise TimelineResolutionError(f"Custom range starts {start} after it ends {end}")
        clamped_end = min(end, today) + ONE_DAY
        # A range that has not started yet resolves to an empty window
        return Interval(start, max(clamped_end, start))
    return Interval(month_start(today), next_month_start(today))


def try_resolve_interval(
    timeline: Optional[str],
    reference_date: DateLike,
    custom_start: Optional[DateLike] = None,
    custom_end: Optional[DateLike] = None,
) -> Tuple[Optional[Interval], Optional[str]]:
    """Like ``resolve_interval`` but reports failure as a value."""
    try:
        return resolve_interval(timeline, reference_date, custom_start, custom_end), None
    except TimelineResolutionError as exc:
        return None, str(exc)

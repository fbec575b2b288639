"""Interval resolution and overlap detection.

Every stored or requested slot is a calendar date plus "HH:MM" start/end
times in venue-local time. ``resolve_interval`` turns that into an absolute
``Interval``; an end at or before the start rolls over to the next day.
``overlaps`` is the only comparison used to decide conflicts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from venuebook.core.exceptions import InvalidDateFormat, InvalidTimeFormat

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

ONE_DAY = timedelta(days=1)
UTC = ZoneInfo("UTC")


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def hours(self) -> Decimal:
        minutes = int(self.duration.total_seconds()) // 60
        return Decimal(minutes) / Decimal(60)

    def days(self) -> list[date]:
        """Calendar days touched by the interval (end is exclusive)."""
        out = []
        cur = self.start.date()
        last = (self.end - timedelta(microseconds=1)).date() if self.end > self.start else cur
        while True:
            out.append(cur)
            if cur >= last:
                return out
            cur = cur + ONE_DAY


def parse_time(value: str | time) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    if not isinstance(value, str):
        raise InvalidTimeFormat(value)
    m = _HHMM.match(value.strip())
    if not m:
        raise InvalidTimeFormat(value)
    return time(int(m.group(1)), int(m.group(2)))


def format_time(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def parse_date(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateFormat(value)
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise InvalidDateFormat(value) from None


def resolve_interval(
    event_date: str | date,
    start_time: str | time,
    end_time: str | time,
    end_date: str | date | None = None,
) -> Interval:
    """Resolve a date and two times of day into an absolute interval.

    ``end_date`` defaults to ``event_date``. If the resulting end is not after
    the start, the booking runs past midnight and the end moves forward one
    day, so equal start and end times give a 24 hour interval.
    """
    d = parse_date(event_date)
    end_d = parse_date(end_date) if end_date is not None else d

    start = datetime.combine(d, parse_time(start_time))
    end = datetime.combine(end_d, parse_time(end_time))
    if end <= start:
        try:
            end = end + ONE_DAY
        except OverflowError:
            raise InvalidDateFormat(end_d.isoformat()) from None
    return Interval(start=start, end=end)


def full_day(day: str | date) -> Interval:
    d = parse_date(day)
    start = datetime.combine(d, time(0, 0))
    if d == date.max:
        # Midnight after the last representable day does not exist
        return Interval(start=start, end=datetime.max)
    return Interval(start=start, end=start + ONE_DAY)


def overlaps(a: Interval, b: Interval) -> bool:
    """Half-open intersection: intervals that only touch do not overlap."""
    return a.start < b.end and a.end > b.start


def as_utc(value: datetime | None = None) -> datetime:
    """Aware UTC timestamp for comparing hold expiries; naive values are taken as UTC."""
    if value is None:
        return datetime.now(tz=UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)

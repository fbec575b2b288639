from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from venuebook.models.blackout import VenueBlackout
from venuebook.models.booking import HOLD_STATUS, OCCUPYING_STATUSES, Booking
from venuebook.services.intervals import Interval, as_utc, full_day, overlaps, parse_date, resolve_interval
from venuebook.services.repositories import VenueRepository

logger = logging.getLogger(__name__)

UNVERIFIED = "Could not verify availability"


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    reason: str = ""
    conflict: Booking | VenueBlackout | None = None

    @property
    def conflict_type(self) -> str | None:
        if isinstance(self.conflict, Booking):
            return "booking"
        if isinstance(self.conflict, VenueBlackout):
            return "blackout"
        return None


@dataclass(frozen=True)
class CalendarDay:
    date: date
    status: str  # available/partial/booked/blocked/unavailable


def booking_interval(booking: Booking) -> Interval:
    return resolve_interval(booking.event_date, booking.start_time, booking.end_time, end_date=booking.event_end_date)


def holds_slot(booking: Booking, now: datetime) -> bool:
    """Whether the booking currently occupies its slot. ``now`` must be aware."""
    if booking.status not in OCCUPYING_STATUSES:
        return False
    if booking.status == HOLD_STATUS and booking.hold_expires_at is not None:
        return as_utc(booking.hold_expires_at) > now
    return True


def blackout_interval(blackout: VenueBlackout) -> Interval:
    if blackout.is_full_day or not blackout.start_time or not blackout.end_time:
        return full_day(blackout.blocked_date)
    return resolve_interval(blackout.blocked_date, blackout.start_time, blackout.end_time)


def _daterange(start: date, end: date):
    cur = start
    while True:
        yield cur
        if cur >= end:
            return
        cur = cur + timedelta(days=1)


class AvailabilityService:
    """Answers whether a venue slot is free.

    Any failure while loading or interpreting records reports the slot as
    unavailable instead of raising, so a caller can never mistake an error
    for a free slot.
    """

    def __init__(self, repo: VenueRepository):
        self.repo = repo

    def check_availability(
        self,
        venue_id: str,
        event_date: str | date,
        start_time: str | time,
        end_time: str | time,
        event_end_date: str | date | None = None,
        exclude_booking_id: str | None = None,
        now: datetime | None = None,
    ) -> AvailabilityResult:
        try:
            return self._check(venue_id, event_date, start_time, end_time, event_end_date, exclude_booking_id, as_utc(now))
        except Exception:
            logger.exception("Availability check failed for venue %s on %s", venue_id, event_date)
            return AvailabilityResult(available=False, reason=UNVERIFIED)

    def _check(
        self,
        venue_id: str,
        event_date: Any,
        start_time: Any,
        end_time: Any,
        event_end_date: Any,
        exclude_booking_id: str | None,
        now: datetime,
    ) -> AvailabilityResult:
        candidate = resolve_interval(event_date, start_time, end_time, end_date=event_end_date)
        if candidate.end <= candidate.start:
            return AvailabilityResult(available=False, reason="Invalid time range")

        days = candidate.days()
        first_day, last_day = days[0], days[-1]

        bookings = self.repo.list_bookings(venue_id, OCCUPYING_STATUSES, date_from=first_day, date_to=last_day)
        for booking in bookings:
            if exclude_booking_id and booking.id == exclude_booking_id:
                continue
            if not holds_slot(booking, now):
                continue
            if overlaps(candidate, booking_interval(booking)):
                return AvailabilityResult(
                    available=False, reason="Time slot conflicts with existing booking", conflict=booking
                )

        for blackout in self.repo.list_blackouts(venue_id, date_from=first_day, date_to=last_day):
            if overlaps(candidate, blackout_interval(blackout)):
                reason = "Date is blocked by venue owner" if blackout.is_full_day else "Time slot is blocked by venue owner"
                return AvailabilityResult(available=False, reason=reason, conflict=blackout)

        return AvailabilityResult(available=True, reason="Time slot is available")

    def calendar(
        self,
        venue_id: str,
        *,
        from_date: str | date,
        to_date: str | date,
        now: datetime | None = None,
    ) -> list[CalendarDay]:
        """Per-day status for a date range, for rendering a booking calendar.

        ``blocked`` wins over ``booked``, which wins over ``partial``.
        """
        start = parse_date(from_date)
        end = parse_date(to_date)
        if start > end:
            return []

        now = as_utc(now)
        try:
            bookings = [
                booking_interval(b)
                for b in self.repo.list_bookings(venue_id, OCCUPYING_STATUSES, date_from=start, date_to=end)
                if holds_slot(b, now)
            ]
            blackouts = [
                (b.is_full_day or not b.start_time or not b.end_time, blackout_interval(b))
                for b in self.repo.list_blackouts(venue_id, date_from=start, date_to=end)
            ]
        except Exception:
            logger.exception("Calendar lookup failed for venue %s", venue_id)
            return [CalendarDay(date=d, status="unavailable") for d in _daterange(start, end)]

        out: list[CalendarDay] = []
        for d in _daterange(start, end):
            day = full_day(d)
            status = "available"
            if any(is_full and overlaps(day, iv) for is_full, iv in blackouts):
                status = "blocked"
            elif any(overlaps(day, iv) for iv in bookings):
                status = "booked"
            elif any(overlaps(day, iv) for _, iv in blackouts):
                status = "partial"
            out.append(CalendarDay(date=d, status=status))
        return out

from __future__ import annotations

from typing import Any


class VenuebookError(Exception):
    """Base class for errors raised by the booking engine."""


class InvalidTimeFormat(VenuebookError, ValueError):
    def __init__(self, value: Any):
        super().__init__(f"Invalid time of day {value!r}, expected HH:MM")
        self.value = value


class InvalidDateFormat(VenuebookError, ValueError):
    def __init__(self, value: Any):
        super().__init__(f"Invalid date {value!r}, expected YYYY-MM-DD")
        self.value = value


class VenueNotFound(VenuebookError):
    def __init__(self, venue_id: str):
        super().__init__(f"Venue {venue_id} not found")
        self.venue_id = venue_id


class BookingRejected(VenuebookError):
    """The booking request is well formed but cannot be accepted."""


class BookingConflict(BookingRejected):
    """The requested slot overlaps an occupying booking or a blackout."""

    def __init__(self, message: str = "Time slot already booked", conflict: Any = None):
        super().__init__(message)
        self.conflict = conflict


class ReservationExpired(BookingRejected):
    def __init__(self, reservation_id: str):
        super().__init__("Reservation has expired")
        self.reservation_id = reservation_id

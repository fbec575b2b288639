from __future__ import annotations

from datetime import date

from pydantic import BaseModel


class AvailabilityConflict(BaseModel):
    type: str  # booking/blackout
    id: str
    date: date
    start_time: str | None = None
    end_time: str | None = None
    is_full_day: bool = False


class AvailabilityResponse(BaseModel):
    available: bool
    reason: str = ""
    conflict: AvailabilityConflict | None = None


class CalendarDayOut(BaseModel):
    date: date
    status: str  # available/partial/booked/blocked/unavailable


class CalendarResponse(BaseModel):
    venue_id: str
    days: list[CalendarDayOut]

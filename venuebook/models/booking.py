from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from venuebook.db.base import Base
from venuebook.models._mixins import TimestampMixin

# Temporary hold taken while a customer fills in booking details
HOLD_STATUS = "slot_reserved"

BOOKING_STATUSES = (HOLD_STATUS, "pending", "confirmed", "completed", "cancelled", "rejected")

# Only these statuses hold a slot on the venue calendar; a hold stops once it expires
OCCUPYING_STATUSES = frozenset({HOLD_STATUS, "pending", "confirmed"})


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    venue_id: Mapped[str] = mapped_column(String(36), ForeignKey("venues.id"), nullable=False, index=True)

    event_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    # None for same-day events
    event_end_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM, venue-local
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM, venue-local

    # Resolved interval written by the booking service; rows without it are outside the exclusion constraint
    start_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    end_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    # Set only while status is slot_reserved
    hold_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    guest_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    contact_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    contact_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    discount_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

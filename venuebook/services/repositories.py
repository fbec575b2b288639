"""Data access contracts used by the booking engine.

Services depend on ``VenueRepository`` rather than on a session, so they can
be driven by the SQLAlchemy implementation below or by anything else with
the same shape.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Protocol, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from venuebook.models.blackout import VenueBlackout
from venuebook.models.booking import HOLD_STATUS, Booking
from venuebook.models.discount_code import DiscountCode
from venuebook.models.pricing_rule import PricingRule
from venuebook.models.venue import Venue


def _day_before(d: date) -> date:
    return d - timedelta(days=1) if d > date.min else d


class VenueRepository(Protocol):
    def get_venue(self, venue_id: str) -> Venue | None: ...

    def list_bookings(
        self,
        venue_id: str,
        statuses: Iterable[str],
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Sequence[Booking]: ...

    def list_blackouts(
        self,
        venue_id: str,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Sequence[VenueBlackout]: ...

    def list_active_pricing_rules(self, venue_id: str) -> Sequence[PricingRule]: ...

    def find_discount_code(self, code: str, venue_id: str) -> DiscountCode | None: ...


class SqlAlchemyVenueRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_venue(self, venue_id: str) -> Venue | None:
        return self.db.get(Venue, venue_id)

    def list_bookings(
        self,
        venue_id: str,
        statuses: Iterable[str],
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Sequence[Booking]:
        q = (
            select(Booking)
            .where(Booking.venue_id == venue_id)
            .where(Booking.status.in_(sorted(statuses)))
        )
        # Inclusive day-level prefilter; exact overlap is decided on resolved intervals.
        # A booking without an end date can still run into the next morning.
        if date_to is not None:
            q = q.where(Booking.event_date <= date_to)
        if date_from is not None:
            q = q.where(func.coalesce(Booking.event_end_date, Booking.event_date) >= _day_before(date_from))
        q = q.order_by(Booking.event_date, Booking.start_time, Booking.id)
        return self.db.execute(q).scalars().all()

    def list_blackouts(
        self,
        venue_id: str,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Sequence[VenueBlackout]:
        q = select(VenueBlackout).where(VenueBlackout.venue_id == venue_id)
        if date_from is not None:
            # Partial overnight blackouts from the previous day can reach into date_from
            q = q.where(VenueBlackout.blocked_date >= _day_before(date_from))
        if date_to is not None:
            q = q.where(VenueBlackout.blocked_date <= date_to)
        q = q.order_by(VenueBlackout.blocked_date, VenueBlackout.id)
        return self.db.execute(q).scalars().all()

    def list_active_pricing_rules(self, venue_id: str) -> Sequence[PricingRule]:
        q = (
            select(PricingRule)
            .where(PricingRule.venue_id == venue_id)
            .where(PricingRule.is_active == True)
            .order_by(PricingRule.sort_order, PricingRule.created_at, PricingRule.id)
        )
        return self.db.execute(q).scalars().all()

    def find_discount_code(self, code: str, venue_id: str) -> DiscountCode | None:
        q = (
            select(DiscountCode)
            .where(DiscountCode.code == code)
            .where(DiscountCode.venue_id == venue_id)
            .where(DiscountCode.is_active == True)
            .limit(1)
        )
        return self.db.execute(q).scalars().first()

    # Booking creation

    def lock_venue(self, venue_id: str) -> Venue | None:
        """Load the venue row with a write lock held until the transaction ends.

        Serialises concurrent booking attempts for the same venue on backends
        that support ``FOR UPDATE``; SQLite ignores the clause.
        """
        q = select(Venue).where(Venue.id == venue_id).with_for_update()
        return self.db.execute(q).scalars().first()

    def add_booking(self, booking: Booking) -> Booking:
        self.db.add(booking)
        self.db.flush()
        return booking

    def get_booking(self, booking_id: str) -> Booking | None:
        return self.db.get(Booking, booking_id)

    def list_expired_holds(self, now: datetime, venue_id: str | None = None) -> Sequence[Booking]:
        q = (
            select(Booking)
            .where(Booking.status == HOLD_STATUS)
            .where(Booking.hold_expires_at.is_not(None))
            .where(Booking.hold_expires_at <= now)
        )
        if venue_id is not None:
            q = q.where(Booking.venue_id == venue_id)
        return self.db.execute(q.order_by(Booking.hold_expires_at, Booking.id)).scalars().all()

    def delete_booking(self, booking: Booking) -> None:
        self.db.delete(booking)
        self.db.flush()

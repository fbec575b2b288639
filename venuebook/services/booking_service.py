from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from venuebook.core.config import get_settings
from venuebook.core.exceptions import BookingConflict, BookingRejected, ReservationExpired, VenueNotFound
from venuebook.models.booking import HOLD_STATUS, Booking
from venuebook.models.venue import Venue
from venuebook.services.availability_service import AvailabilityService, holds_slot
from venuebook.services.intervals import Interval, as_utc, format_time, parse_date, parse_time, resolve_interval
from venuebook.services.price_calculator import PriceCalculator
from venuebook.services.repositories import SqlAlchemyVenueRepository

logger = logging.getLogger(__name__)


def _parse_slot(event_date, start_time, end_time) -> tuple[date, time, time, Interval]:
    d = parse_date(event_date)
    start_t = parse_time(start_time)
    end_t = parse_time(end_time)
    return d, start_t, end_t, resolve_interval(d, start_t, end_t)


def _locked_venue(repo: SqlAlchemyVenueRepository, venue_id: str) -> Venue:
    venue = repo.lock_venue(venue_id)
    if venue is None or not venue.active:
        raise VenueNotFound(venue_id)
    return venue


def _check_guests(venue: Venue, guest_count: int) -> None:
    if guest_count < 1:
        raise BookingRejected("At least one guest is required")
    if venue.capacity and guest_count > venue.capacity:
        raise BookingRejected(f"Number of guests cannot exceed capacity of {venue.capacity}")


def _release_expired_holds(repo: SqlAlchemyVenueRepository, venue_id: str | None, now: datetime) -> int:
    expired = repo.list_expired_holds(now, venue_id=venue_id)
    for hold in expired:
        repo.delete_booking(hold)
    return len(expired)


def _ensure_free(repo: SqlAlchemyVenueRepository, venue_id: str, d, start_t, end_t, now, exclude_booking_id=None) -> None:
    availability = AvailabilityService(repo).check_availability(
        venue_id, d, start_t, end_t, exclude_booking_id=exclude_booking_id, now=now
    )
    if not availability.available:
        raise BookingConflict(availability.reason or "The selected slot is not available.", availability.conflict)


def _slot_booking(venue_id: str, d: date, start_t: time, end_t: time, interval: Interval, **fields) -> Booking:
    end_day = interval.end.date()
    return Booking(
        venue_id=venue_id,
        event_date=d,
        event_end_date=end_day if end_day != d else None,
        start_time=format_time(start_t),
        end_time=format_time(end_t),
        start_at=interval.start,
        end_at=interval.end,
        **fields,
    )


def create_booking(
    db: Session,
    *,
    venue_id: str,
    event_date: str | date,
    start_time: str,
    end_time: str,
    guest_count: int,
    contact_name: str = "",
    contact_email: str = "",
    discount_code: str | None = None,
    now: datetime | None = None,
) -> Booking:
    """Create a pending booking if the slot is still free.

    The availability recheck and the insert share one transaction with the
    venue row locked, and the ``bookings_no_overlap`` exclusion constraint
    rejects whatever slips past on backends without row locks. Either way a
    conflicting insert raises ``BookingConflict`` instead of succeeding.
    """
    repo = SqlAlchemyVenueRepository(db)
    d, start_t, end_t, interval = _parse_slot(event_date, start_time, end_time)
    now = as_utc(now)

    try:
        venue = _locked_venue(repo, venue_id)
        _check_guests(venue, guest_count)
        # Lapsed holds would still trip the exclusion constraint
        _release_expired_holds(repo, venue_id, now)
        _ensure_free(repo, venue_id, d, start_t, end_t, now)

        price = PriceCalculator(repo).calculate_price(
            venue, repo.list_active_pricing_rules(venue_id), d, start_t, end_t, discount_code, now=now
        )

        booking = repo.add_booking(
            _slot_booking(
                venue_id,
                d,
                start_t,
                end_t,
                interval,
                status="pending",
                guest_count=guest_count,
                contact_name=contact_name or "",
                contact_email=contact_email or "",
                total_amount=price.final_price,
                currency=price.currency,
                discount_code=price.discount_code,
                discount_amount=price.discount_amount,
            )
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Booking insert for venue %s rejected by storage: %s", venue_id, exc.orig)
        raise BookingConflict() from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info("Created booking %s for venue %s on %s %s-%s", booking.id, venue_id, d, booking.start_time, booking.end_time)
    return booking


def reserve_slot(
    db: Session,
    *,
    venue_id: str,
    event_date: str | date,
    start_time: str,
    end_time: str,
    guest_count: int = 1,
    hold_minutes: int | None = None,
    now: datetime | None = None,
) -> Booking:
    """Hold a free slot while the customer completes the booking.

    The hold occupies the slot like a pending booking until
    ``hold_expires_at``; after that it no longer blocks anyone and is deleted
    by the next booking attempt on the venue or by ``expire_reservations``.
    """
    repo = SqlAlchemyVenueRepository(db)
    d, start_t, end_t, interval = _parse_slot(event_date, start_time, end_time)
    now = as_utc(now)
    if hold_minutes is None:
        hold_minutes = get_settings().slot_hold_minutes

    try:
        venue = _locked_venue(repo, venue_id)
        _check_guests(venue, guest_count)
        _release_expired_holds(repo, venue_id, now)
        _ensure_free(repo, venue_id, d, start_t, end_t, now)

        hold = repo.add_booking(
            _slot_booking(
                venue_id,
                d,
                start_t,
                end_t,
                interval,
                status=HOLD_STATUS,
                hold_expires_at=now + timedelta(minutes=hold_minutes),
                guest_count=guest_count,
                currency=venue.currency or get_settings().default_currency,
            )
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Slot hold for venue %s rejected by storage: %s", venue_id, exc.orig)
        raise BookingConflict() from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(hold)
    logger.info("Reserved slot %s for venue %s on %s %s-%s until %s", hold.id, venue_id, d, hold.start_time, hold.end_time, hold.hold_expires_at)
    return hold


def confirm_reservation(
    db: Session,
    reservation_id: str,
    *,
    guest_count: int | None = None,
    contact_name: str = "",
    contact_email: str = "",
    discount_code: str | None = None,
    instant: bool = False,
    now: datetime | None = None,
) -> Booking:
    """Turn a live slot hold into a priced booking.

    The booking becomes ``confirmed`` for instant-booking venues and
    ``pending`` otherwise. An expired hold, or one whose slot has since been
    taken or blacked out, is deleted and the call raises.
    """
    repo = SqlAlchemyVenueRepository(db)
    now = as_utc(now)

    try:
        hold = repo.get_booking(reservation_id)
        if hold is None or hold.status != HOLD_STATUS:
            raise BookingRejected("Invalid or expired reservation")
        venue = _locked_venue(repo, hold.venue_id)

        if not holds_slot(hold, now):
            repo.delete_booking(hold)
            db.commit()
            logger.info("Slot hold %s expired before confirmation", reservation_id)
            raise ReservationExpired(reservation_id)

        guests = hold.guest_count if guest_count is None else guest_count
        _check_guests(venue, guests)

        d, start_t, end_t = hold.event_date, parse_time(hold.start_time), parse_time(hold.end_time)
        try:
            _ensure_free(repo, venue.id, d, start_t, end_t, now, exclude_booking_id=hold.id)
        except BookingConflict as exc:
            repo.delete_booking(hold)
            db.commit()
            logger.info("Slot hold %s lost its slot: %s", reservation_id, exc)
            raise BookingConflict("Time slot is no longer available", exc.conflict) from None

        price = PriceCalculator(repo).calculate_price(
            venue, repo.list_active_pricing_rules(venue.id), d, start_t, end_t, discount_code, now=now
        )

        hold.status = "confirmed" if instant else "pending"
        hold.hold_expires_at = None
        hold.guest_count = guests
        hold.contact_name = contact_name or ""
        hold.contact_email = contact_email or ""
        hold.total_amount = price.final_price
        hold.currency = price.currency
        hold.discount_code = price.discount_code
        hold.discount_amount = price.discount_amount
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Confirmation of slot hold %s rejected by storage: %s", reservation_id, exc.orig)
        raise BookingConflict() from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(hold)
    logger.info("Confirmed slot hold %s as %s booking", hold.id, hold.status)
    return hold


def expire_reservations(db: Session, *, now: datetime | None = None) -> int:
    """Delete every slot hold whose expiry has passed. Returns how many went."""
    repo = SqlAlchemyVenueRepository(db)
    try:
        released = _release_expired_holds(repo, None, as_utc(now))
        db.commit()
    except Exception:
        db.rollback()
        raise
    if released:
        logger.info("Released %d expired slot holds", released)
    return released

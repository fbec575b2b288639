from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from conftest import MONDAY

from venuebook.core.exceptions import BookingConflict, BookingRejected, ReservationExpired, VenueNotFound
from venuebook.models import Booking
from venuebook.services.booking_service import confirm_reservation, create_booking, expire_reservations, reserve_slot
from venuebook.services.intervals import as_utc, overlaps
from venuebook.services.availability_service import booking_interval

NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)


def _book(db, venue, **kwargs):
    fields = {"event_date": MONDAY, "start_time": "18:00", "end_time": "22:00", "guest_count": 40}
    fields.update(kwargs)
    return create_booking(db, venue_id=venue.id, **fields)


def _hold(db, venue, **kwargs):
    fields = {"event_date": MONDAY, "start_time": "18:00", "end_time": "22:00", "now": NOW}
    fields.update(kwargs)
    return reserve_slot(db, venue_id=venue.id, **fields)


def test_creates_pending_booking_with_price(db, venue):
    booking = _book(db, venue)
    assert booking.status == "pending"
    assert booking.total_amount == Decimal("200")
    assert booking.event_end_date is None
    assert booking.start_at.hour == 18 and booking.end_at.hour == 22


def test_overnight_booking_stores_end_date(db, venue):
    booking = _book(db, venue, start_time="23:00", end_time="02:00")
    assert booking.event_end_date == MONDAY + timedelta(days=1)
    assert booking_interval(booking).hours == 3


def test_discount_recorded(db, venue, make_discount):
    make_discount(venue, code="SAVE10")
    booking = _book(db, venue, discount_code="save10")
    assert booking.discount_code == "SAVE10"
    assert booking.discount_amount == Decimal("20")
    assert booking.total_amount == Decimal("180")


def test_conflicting_booking_rejected(db, venue):
    _book(db, venue)
    with pytest.raises(BookingConflict):
        _book(db, venue, start_time="21:00", end_time="23:00")


def test_back_to_back_bookings_allowed(db, venue):
    _book(db, venue, start_time="14:00", end_time="18:00")
    _book(db, venue, start_time="18:00", end_time="22:00")


def test_blackout_rejects_booking(db, venue, make_blackout):
    blackout = make_blackout(venue, is_full_day=True)
    with pytest.raises(BookingConflict) as excinfo:
        _book(db, venue)
    assert excinfo.value.conflict.id == blackout.id


def test_capacity_enforced(db, make_venue):
    venue = make_venue(capacity=10)
    with pytest.raises(BookingRejected):
        _book(db, venue, guest_count=11)


def test_unknown_venue(db):
    with pytest.raises(VenueNotFound):
        create_booking(db, venue_id="missing", event_date=MONDAY, start_time="18:00", end_time="22:00", guest_count=1)


def test_no_two_occupying_bookings_overlap(db, venue):
    requests = [
        ("10:00", "12:00"),
        ("11:00", "13:00"),
        ("12:00", "14:00"),
        ("13:30", "15:00"),
        ("23:00", "01:00"),
        ("22:00", "23:30"),
    ]
    for start, end in requests:
        try:
            _book(db, venue, start_time=start, end_time=end)
        except BookingConflict:
            pass

    stored = db.query(Booking).filter(Booking.venue_id == venue.id, Booking.status.in_(["pending", "confirmed"])).all()
    assert len(stored) == 3
    for i, a in enumerate(stored):
        for b in stored[i + 1:]:
            assert not overlaps(booking_interval(a), booking_interval(b))


def test_booking_without_resolved_interval_still_conflicts(db, venue, make_booking):
    legacy = make_booking(venue, status="pending")
    assert legacy.start_at is None
    with pytest.raises(BookingConflict):
        _book(db, venue, start_time="20:00", end_time="23:00")
    _book(db, venue, start_time="09:00", end_time="12:00")


def test_overnight_past_last_date_rejected(db, venue):
    with pytest.raises(ValueError):
        _book(db, venue, event_date="9999-12-31", start_time="23:00", end_time="01:00")


def test_reserve_slot_holds_for_configured_minutes(db, venue):
    hold = _hold(db, venue)
    assert hold.status == "slot_reserved"
    assert hold.total_amount == 0
    assert as_utc(hold.hold_expires_at) == NOW + timedelta(minutes=15)
    assert hold.start_at.hour == 18 and hold.end_at.hour == 22


def test_live_hold_blocks_booking(db, venue):
    _hold(db, venue)
    with pytest.raises(BookingConflict):
        _book(db, venue, start_time="21:00", end_time="23:00", now=NOW + timedelta(minutes=5))
    with pytest.raises(BookingConflict):
        _hold(db, venue, start_time="20:00", end_time="21:00", now=NOW + timedelta(minutes=5))


def test_expired_hold_is_released_by_next_booking(db, venue):
    hold = _hold(db, venue, hold_minutes=10)
    hold_id = hold.id
    booking = _book(db, venue, start_time="21:00", end_time="23:00", now=NOW + timedelta(minutes=20))
    assert booking.status == "pending"
    assert db.get(Booking, hold_id) is None


def test_confirm_reservation_prices_booking(db, venue, make_discount):
    make_discount(venue, code="SAVE10")
    hold = _hold(db, venue)
    booking = confirm_reservation(
        db,
        hold.id,
        guest_count=30,
        contact_name="Dana",
        contact_email="dana@example.com",
        discount_code="save10",
        now=NOW + timedelta(minutes=5),
    )
    assert booking.id == hold.id
    assert booking.status == "pending"
    assert booking.hold_expires_at is None
    assert booking.guest_count == 30
    assert booking.total_amount == Decimal("180")
    assert booking.discount_code == "SAVE10"


def test_confirm_instant_booking(db, venue):
    hold = _hold(db, venue)
    booking = confirm_reservation(db, hold.id, instant=True, now=NOW + timedelta(minutes=1))
    assert booking.status == "confirmed"
    assert booking.total_amount == Decimal("200")


def test_confirm_expired_reservation_deletes_it(db, venue):
    hold = _hold(db, venue)
    hold_id = hold.id
    with pytest.raises(ReservationExpired):
        confirm_reservation(db, hold_id, now=NOW + timedelta(minutes=16))
    assert db.get(Booking, hold_id) is None


def test_confirm_after_slot_blacked_out(db, venue, make_blackout):
    hold = _hold(db, venue)
    hold_id = hold.id
    blackout = make_blackout(venue, is_full_day=True)
    with pytest.raises(BookingConflict) as excinfo:
        confirm_reservation(db, hold_id, now=NOW + timedelta(minutes=5))
    assert excinfo.value.conflict.id == blackout.id
    assert db.get(Booking, hold_id) is None


def test_confirm_after_overlapping_booking(db, venue, make_booking):
    hold = _hold(db, venue)
    make_booking(venue, start_time="20:00", end_time="23:00", status="confirmed")
    with pytest.raises(BookingConflict):
        confirm_reservation(db, hold.id, now=NOW + timedelta(minutes=5))


def test_confirm_unknown_or_confirmed_reservation(db, venue):
    with pytest.raises(BookingRejected):
        confirm_reservation(db, "missing", now=NOW)
    booking = _book(db, venue, now=NOW)
    with pytest.raises(BookingRejected):
        confirm_reservation(db, booking.id, now=NOW)


def test_confirm_checks_capacity(db, make_venue):
    venue = make_venue(capacity=10)
    hold = _hold(db, venue)
    with pytest.raises(BookingRejected):
        confirm_reservation(db, hold.id, guest_count=11, now=NOW + timedelta(minutes=1))
    assert db.get(Booking, hold.id).status == "slot_reserved"


def test_expire_reservations(db, venue):
    short = _hold(db, venue, start_time="10:00", end_time="12:00", hold_minutes=5)
    lasting = _hold(db, venue, start_time="14:00", end_time="16:00", hold_minutes=30)
    short_id = short.id

    assert expire_reservations(db, now=NOW + timedelta(minutes=10)) == 1
    assert db.get(Booking, short_id) is None
    assert db.get(Booking, lasting.id).status == "slot_reserved"
    assert expire_reservations(db, now=NOW + timedelta(minutes=10)) == 0

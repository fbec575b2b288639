from __future__ import annotations

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from venuebook.core.deps import get_availability_service, get_db, get_price_calculator, get_repository
from venuebook.core.exceptions import BookingConflict, BookingRejected, ReservationExpired, VenueNotFound
from venuebook.models.blackout import VenueBlackout
from venuebook.models.venue import Venue
from venuebook.schemas.availability import AvailabilityConflict, AvailabilityResponse, CalendarDayOut, CalendarResponse
from venuebook.schemas.booking import BookingCreate, BookingOut, HoldConfirm, SlotHoldCreate, SlotHoldOut
from venuebook.schemas.pricing import AppliedRuleOut, CurrencyConversionOut, DisplayPrice, PriceBreakdownOut, QuoteRequest
from venuebook.schemas.venue import VenueOut
from venuebook.services.availability_service import AvailabilityResult, AvailabilityService
from venuebook.services.booking_service import confirm_reservation, create_booking, reserve_slot
from venuebook.services.currency import can_convert, convert_currency, format_currency, quantize_money
from venuebook.services.intervals import parse_date, parse_time
from venuebook.services.price_calculator import PriceBreakdown, PriceCalculator
from venuebook.services.repositories import SqlAlchemyVenueRepository

router = APIRouter()

MAX_CALENDAR_DAYS = 366


def _require_venue(repo: SqlAlchemyVenueRepository, venue_id: str) -> Venue:
    venue = repo.get_venue(venue_id)
    if not venue or not venue.active:
        raise HTTPException(status_code=404, detail="Venue not found")
    return venue


def _validate_slot(event_date: str, start_time: str, end_time: str, event_end_date: str | None = None) -> None:
    try:
        parse_date(event_date)
        if event_end_date:
            parse_date(event_end_date)
        parse_time(start_time)
        parse_time(end_time)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def _conflict_out(result: AvailabilityResult) -> AvailabilityConflict | None:
    c = result.conflict
    if c is None:
        return None
    if isinstance(c, VenueBlackout):
        return AvailabilityConflict(
            type="blackout",
            id=c.id,
            date=c.blocked_date,
            start_time=c.start_time,
            end_time=c.end_time,
            is_full_day=c.is_full_day,
        )
    return AvailabilityConflict(type="booking", id=c.id, date=c.event_date, start_time=c.start_time, end_time=c.end_time)


def _breakdown_out(b: PriceBreakdown, display_currency: str | None) -> PriceBreakdownOut:
    rule = b.applied_rule
    display = None
    # No display block for a currency without a rate
    if display_currency and can_convert(b.currency, display_currency):
        final_price = quantize_money(convert_currency(b.final_price, b.currency, display_currency))
        total_due = quantize_money(convert_currency(b.total_due, b.currency, display_currency))
        display = DisplayPrice(
            currency=display_currency.upper(),
            final_price=final_price,
            total_due=total_due,
            formatted_total=format_currency(total_due, display_currency),
        )
    return PriceBreakdownOut(
        hours=b.hours,
        base_total=b.base_total,
        adjusted_rate=b.adjusted_rate,
        dynamic_adjustment=b.dynamic_adjustment,
        applied_rule=AppliedRuleOut(
            id=rule.id,
            name=rule.name,
            price_modifier_type=rule.price_modifier_type,
            price_modifier_value=rule.price_modifier_value,
        ) if rule is not None else None,
        subtotal=b.subtotal,
        discount_amount=b.discount_amount,
        discount_message=b.discount_message,
        discount_code=b.discount_code,
        final_price=b.final_price,
        platform_fee=b.platform_fee,
        total_due=b.total_due,
        currency=b.currency,
        display=display,
    )


@router.get("/venues", response_model=list[VenueOut])
def list_public_venues(db: Session = Depends(get_db)):
    return db.execute(select(Venue).where(Venue.active == True).order_by(Venue.name)).scalars().all()


@router.get("/venues/{venue_id}/availability", response_model=AvailabilityResponse)
def venue_availability(
    venue_id: str,
    event_date: str,
    start_time: str,
    end_time: str,
    event_end_date: str | None = None,
    exclude_booking_id: str | None = None,
    repo: SqlAlchemyVenueRepository = Depends(get_repository),
    service: AvailabilityService = Depends(get_availability_service),
):
    _require_venue(repo, venue_id)
    _validate_slot(event_date, start_time, end_time, event_end_date)

    result = service.check_availability(
        venue_id,
        event_date,
        start_time,
        end_time,
        event_end_date=event_end_date,
        exclude_booking_id=exclude_booking_id,
    )
    return AvailabilityResponse(available=result.available, reason=result.reason, conflict=_conflict_out(result))


@router.get("/venues/{venue_id}/calendar", response_model=CalendarResponse)
def venue_calendar(
    venue_id: str,
    from_date: date,
    to_date: date,
    repo: SqlAlchemyVenueRepository = Depends(get_repository),
    service: AvailabilityService = Depends(get_availability_service),
):
    _require_venue(repo, venue_id)
    if from_date > to_date:
        raise HTTPException(status_code=400, detail="Invalid date range")
    if (to_date - from_date).days >= MAX_CALENDAR_DAYS:
        raise HTTPException(status_code=400, detail="Date range too long")

    days = service.calendar(venue_id, from_date=from_date, to_date=to_date)
    return CalendarResponse(venue_id=venue_id, days=[CalendarDayOut(date=d.date, status=d.status) for d in days])


@router.post("/venues/{venue_id}/quote", response_model=PriceBreakdownOut)
def quote(
    venue_id: str,
    payload: QuoteRequest,
    calculator: PriceCalculator = Depends(get_price_calculator),
):
    try:
        # Malformed times price as zero hours inside the calculator
        breakdown = calculator.quote(
            venue_id,
            payload.event_date,
            payload.start_time,
            payload.end_time,
            payload.discount_code,
            event_end_date=payload.event_end_date,
        )
    except VenueNotFound:
        raise HTTPException(status_code=404, detail="Venue not found")
    return _breakdown_out(breakdown, payload.display_currency)


@router.post("/bookings", response_model=BookingOut)
def create_public_booking(payload: BookingCreate, db: Session = Depends(get_db)):
    _validate_slot(payload.event_date, payload.start_time, payload.end_time)
    try:
        return create_booking(
            db,
            venue_id=payload.venue_id,
            event_date=payload.event_date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            guest_count=payload.guest_count,
            contact_name=payload.contact_name,
            contact_email=payload.contact_email,
            discount_code=payload.discount_code,
        )
    except VenueNotFound:
        raise HTTPException(status_code=404, detail="Venue not found")
    except BookingConflict as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except (BookingRejected, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/venues/{venue_id}/holds", response_model=SlotHoldOut)
def hold_slot(venue_id: str, payload: SlotHoldCreate, db: Session = Depends(get_db)):
    _validate_slot(payload.event_date, payload.start_time, payload.end_time)
    try:
        return reserve_slot(
            db,
            venue_id=venue_id,
            event_date=payload.event_date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            guest_count=payload.guest_count,
        )
    except VenueNotFound:
        raise HTTPException(status_code=404, detail="Venue not found")
    except BookingConflict as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except (BookingRejected, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/holds/{hold_id}/confirm", response_model=BookingOut)
def confirm_hold(hold_id: str, payload: HoldConfirm, db: Session = Depends(get_db)):
    try:
        return confirm_reservation(
            db,
            hold_id,
            guest_count=payload.guest_count,
            contact_name=payload.contact_name,
            contact_email=payload.contact_email,
            discount_code=payload.discount_code,
        )
    except VenueNotFound:
        raise HTTPException(status_code=404, detail="Venue not found")
    except ReservationExpired as exc:
        raise HTTPException(status_code=410, detail=str(exc))
    except BookingConflict as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except BookingRejected as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/currency/convert", response_model=CurrencyConversionOut)
def currency_convert(amount: Decimal, from_currency: str, to_currency: str):
    converted = quantize_money(convert_currency(amount, from_currency, to_currency))
    return CurrencyConversionOut(
        amount=amount,
        from_currency=from_currency.upper(),
        to_currency=to_currency.upper(),
        converted=converted,
        formatted=format_currency(converted, to_currency),
    )

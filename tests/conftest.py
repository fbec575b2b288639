"""Pytest configuration: in-memory SQLite database and model factories."""

import os

# Must be set before any venuebook import reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TIMEZONE"] = "UTC"

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import venuebook.models  # noqa: F401
from venuebook.core.deps import get_db
from venuebook.db.base import Base
from venuebook.main import app
from venuebook.models import Booking, DiscountCode, PricingRule, Venue, VenueBlackout
from venuebook.services.repositories import SqlAlchemyVenueRepository

# 2030-06-03 is a Monday
MONDAY = date(2030, 6, 3)


@pytest.fixture
def db():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def repo(db):
    return SqlAlchemyVenueRepository(db)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_venue(db):
    def _make(**kwargs) -> Venue:
        fields = {"name": "Harbour Hall", "price_per_hour": Decimal("50.00"), "currency": "USD", "capacity": 120}
        fields.update(kwargs)
        venue = Venue(**fields)
        db.add(venue)
        db.commit()
        return venue

    return _make


@pytest.fixture
def venue(make_venue):
    return make_venue()


@pytest.fixture
def make_booking(db):
    def _make(venue, event_date=MONDAY, start_time="18:00", end_time="22:00", **kwargs) -> Booking:
        booking = Booking(
            venue_id=venue.id,
            event_date=event_date,
            start_time=start_time,
            end_time=end_time,
            status=kwargs.pop("status", "confirmed"),
            **kwargs,
        )
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def make_blackout(db):
    def _make(venue, blocked_date=MONDAY, **kwargs) -> VenueBlackout:
        blackout = VenueBlackout(venue_id=venue.id, blocked_date=blocked_date, **kwargs)
        db.add(blackout)
        db.commit()
        return blackout

    return _make


@pytest.fixture
def make_rule(db):
    def _make(venue, **kwargs) -> PricingRule:
        fields = {"name": "rule", "price_modifier_type": "percentage", "price_modifier_value": Decimal("0"), "days_of_week": []}
        fields.update(kwargs)
        rule = PricingRule(venue_id=venue.id, **fields)
        db.add(rule)
        db.commit()
        return rule

    return _make


@pytest.fixture
def make_discount(db):
    def _make(venue, code="SAVE10", **kwargs) -> DiscountCode:
        fields = {"discount_type": "percentage", "value": Decimal("10")}
        fields.update(kwargs)
        discount = DiscountCode(venue_id=venue.id, code=code, **fields)
        db.add(discount)
        db.commit()
        return discount

    return _make

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from venuebook.db.session import SessionLocal
from venuebook.services.availability_service import AvailabilityService
from venuebook.services.price_calculator import PriceCalculator
from venuebook.services.repositories import SqlAlchemyVenueRepository


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_repository(db: Session = Depends(get_db)) -> SqlAlchemyVenueRepository:
    return SqlAlchemyVenueRepository(db)


def get_availability_service(repo: SqlAlchemyVenueRepository = Depends(get_repository)) -> AvailabilityService:
    return AvailabilityService(repo)


def get_price_calculator(repo: SqlAlchemyVenueRepository = Depends(get_repository)) -> PriceCalculator:
    return PriceCalculator(repo)

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class VenueOut(BaseModel):
    id: str
    name: str
    price_per_hour: Decimal
    currency: str
    capacity: int

    class Config:
        from_attributes = True

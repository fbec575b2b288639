from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class BookingCreate(BaseModel):
    venue_id: str
    event_date: str
    start_time: str = Field(description="HH:MM, 24h, venue-local")
    end_time: str = Field(description="HH:MM, 24h, venue-local")
    guest_count: int = Field(default=1, ge=1)
    contact_name: str = Field(default="", max_length=255)
    contact_email: str = Field(default="", max_length=255)
    discount_code: str | None = Field(default=None, max_length=64)


class BookingOut(BaseModel):
    id: str
    venue_id: str
    event_date: date
    event_end_date: date | None
    start_time: str
    end_time: str
    status: str
    guest_count: int
    total_amount: Decimal
    currency: str
    discount_code: str | None
    discount_amount: Decimal

    class Config:
        from_attributes = True


class SlotHoldCreate(BaseModel):
    event_date: str
    start_time: str = Field(description="HH:MM, 24h, venue-local")
    end_time: str = Field(description="HH:MM, 24h, venue-local")
    guest_count: int = Field(default=1, ge=1)


class SlotHoldOut(BaseModel):
    id: str
    venue_id: str
    event_date: date
    event_end_date: date | None
    start_time: str
    end_time: str
    status: str
    hold_expires_at: datetime | None

    class Config:
        from_attributes = True


class HoldConfirm(BaseModel):
    guest_count: int | None = Field(default=None, ge=1)
    contact_name: str = Field(default="", max_length=255)
    contact_email: str = Field(default="", max_length=255)
    discount_code: str | None = Field(default=None, max_length=64)

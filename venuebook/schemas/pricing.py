from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class QuoteRequest(BaseModel):
    event_date: str
    event_end_date: str | None = None
    start_time: str = Field(description="HH:MM, 24h, venue-local")
    end_time: str = Field(description="HH:MM, 24h, venue-local")
    discount_code: str | None = Field(default=None, max_length=64)
    display_currency: str | None = Field(default=None, min_length=3, max_length=3)


class AppliedRuleOut(BaseModel):
    id: str
    name: str
    price_modifier_type: str
    price_modifier_value: Decimal


class DisplayPrice(BaseModel):
    currency: str
    final_price: Decimal
    total_due: Decimal
    formatted_total: str


class PriceBreakdownOut(BaseModel):
    hours: Decimal
    base_total: Decimal
    adjusted_rate: Decimal
    dynamic_adjustment: Decimal
    applied_rule: AppliedRuleOut | None = None
    subtotal: Decimal
    discount_amount: Decimal
    discount_message: str = ""
    discount_code: str | None = None
    final_price: Decimal
    platform_fee: Decimal
    total_due: Decimal
    currency: str
    display: DisplayPrice | None = None


class CurrencyConversionOut(BaseModel):
    amount: Decimal
    from_currency: str
    to_currency: str
    converted: Decimal
    formatted: str

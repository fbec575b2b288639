from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable

from venuebook.core.config import get_settings
from venuebook.core.exceptions import VenueNotFound
from venuebook.models.pricing_rule import PricingRule
from venuebook.models.venue import Venue
from venuebook.services.currency import quantize_money
from venuebook.services.discount_service import MSG_ERROR, DiscountValidator
from venuebook.services.intervals import resolve_interval
from venuebook.services.pricing_rules import HUNDRED, apply_rule, select_rule, to_decimal
from venuebook.services.repositories import VenueRepository

logger = logging.getLogger(__name__)

ZERO = Decimal(0)


@dataclass(frozen=True)
class PriceBreakdown:
    hours: Decimal
    base_total: Decimal
    adjusted_rate: Decimal
    dynamic_adjustment: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    final_price: Decimal
    platform_fee: Decimal
    total_due: Decimal
    currency: str
    applied_rule: PricingRule | None = field(default=None, compare=False)
    applied_rule_id: str | None = None
    discount_message: str = ""
    discount_code: str | None = None


class PriceCalculator:
    """Computes what a customer pays for a slot.

    base rate -> first matching pricing rule -> discount on the adjusted
    subtotal -> platform fee on the discounted price. All amounts stay in the
    venue's currency.
    """

    def __init__(
        self,
        repo: VenueRepository | None = None,
        discounts: DiscountValidator | None = None,
        platform_fee_percent=None,
    ):
        self.repo = repo
        self.discounts = discounts if discounts is not None else (DiscountValidator(repo) if repo is not None else None)
        if platform_fee_percent is None:
            platform_fee_percent = get_settings().platform_fee_percent
        self.platform_fee_percent = to_decimal(platform_fee_percent)

    def calculate_price(
        self,
        venue: Venue,
        pricing_rules: Iterable[PricingRule],
        event_date: str | date,
        start_time: str | time,
        end_time: str | time,
        discount_code: str | None = None,
        *,
        event_end_date: str | date | None = None,
        now: datetime | None = None,
    ) -> PriceBreakdown:
        price_per_hour = to_decimal(venue.price_per_hour)
        currency = venue.currency or get_settings().default_currency

        try:
            interval = resolve_interval(event_date, start_time, end_time, end_date=event_end_date)
            hours = interval.hours
            event_day = interval.start.date()
        except ValueError as exc:
            logger.warning("Pricing venue %s with zero hours: %s", venue.id, exc)
            hours = ZERO
            event_day = None

        if hours < 0:
            hours = ZERO

        base_total = price_per_hour * hours

        rule = select_rule(venue.id, event_day, pricing_rules) if event_day is not None else None
        adjusted_rate = apply_rule(price_per_hour, rule)

        subtotal = adjusted_rate * hours
        dynamic_adjustment = subtotal - base_total

        discount_amount = ZERO
        discount_message = ""
        applied_code = None
        if discount_code:
            if self.discounts is None:
                discount_message = MSG_ERROR
            else:
                result = self.discounts.validate(discount_code, venue.id, subtotal, currency=currency, now=now)
                discount_amount = result.discount_amount
                discount_message = result.message
                applied_code = result.code

        final_price = max(ZERO, subtotal - discount_amount)
        platform_fee = final_price * self.platform_fee_percent / HUNDRED

        return PriceBreakdown(
            hours=hours,
            base_total=quantize_money(base_total),
            adjusted_rate=quantize_money(adjusted_rate),
            dynamic_adjustment=quantize_money(dynamic_adjustment),
            subtotal=quantize_money(subtotal),
            discount_amount=quantize_money(discount_amount),
            final_price=quantize_money(final_price),
            platform_fee=quantize_money(platform_fee),
            total_due=quantize_money(final_price + platform_fee),
            currency=currency,
            applied_rule=rule,
            applied_rule_id=rule.id if rule is not None else None,
            discount_message=discount_message,
            discount_code=applied_code,
        )

    def quote(
        self,
        venue_id: str,
        event_date: str | date,
        start_time: str | time,
        end_time: str | time,
        discount_code: str | None = None,
        *,
        event_end_date: str | date | None = None,
        now: datetime | None = None,
    ) -> PriceBreakdown:
        if self.repo is None:
            raise RuntimeError("PriceCalculator.quote needs a repository")
        venue = self.repo.get_venue(venue_id)
        if venue is None:
            raise VenueNotFound(venue_id)
        rules = self.repo.list_active_pricing_rules(venue_id)
        return self.calculate_price(
            venue,
            rules,
            event_date,
            start_time,
            end_time,
            discount_code,
            event_end_date=event_end_date,
            now=now,
        )

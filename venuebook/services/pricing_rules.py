"""Dynamic pricing rule selection.

Rules are evaluated in the order given and the first match wins; matching
rules never stack. Repositories return rules ordered by ``sort_order``.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable

from venuebook.models.pricing_rule import PricingRule
from venuebook.services.intervals import parse_date

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from dragging in binary noise
    return Decimal(str(value))


def day_of_week(d: date) -> int:
    """0 = Sunday ... 6 = Saturday, matching how rules store weekdays."""
    return (d.weekday() + 1) % 7


def rule_matches(rule: PricingRule, event_date: date) -> bool:
    if not rule.is_active:
        return False
    days = rule.days_of_week or []
    if days and day_of_week(event_date) not in {int(x) for x in days}:
        return False
    if rule.start_date is not None and event_date < parse_date(rule.start_date):
        return False
    if rule.end_date is not None and event_date > parse_date(rule.end_date):
        return False
    return True


def select_rule(venue_id: str | None, event_date: str | date, rules: Iterable[PricingRule]) -> PricingRule | None:
    d = parse_date(event_date)
    for rule in rules:
        if venue_id is not None and rule.venue_id and rule.venue_id != venue_id:
            continue
        if rule_matches(rule, d):
            return rule
    return None


def apply_rule(base_price_per_hour, rule: PricingRule | None) -> Decimal:
    base = to_decimal(base_price_per_hour)
    if rule is None:
        return base

    value = to_decimal(rule.price_modifier_value)
    if rule.price_modifier_type == "percentage":
        return base * (1 + value / HUNDRED)
    if rule.price_modifier_type == "fixed_amount":
        return base + value
    logger.warning("Ignoring pricing rule %s with unknown modifier type %r", rule.id, rule.price_modifier_type)
    return base

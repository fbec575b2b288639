from datetime import date, timedelta
from decimal import Decimal

from venuebook.models import PricingRule
from venuebook.services.pricing_rules import apply_rule, day_of_week, select_rule

MONDAY = date(2030, 6, 3)


def _rule(**kwargs) -> PricingRule:
    fields = {
        "id": kwargs.pop("id", "r1"),
        "venue_id": "v1",
        "name": "",
        "days_of_week": [],
        "start_date": None,
        "end_date": None,
        "price_modifier_type": "percentage",
        "price_modifier_value": Decimal("10"),
        "is_active": True,
    }
    fields.update(kwargs)
    return PricingRule(**fields)


def test_day_of_week_counts_from_sunday():
    assert day_of_week(MONDAY) == 1
    assert day_of_week(MONDAY - timedelta(days=1)) == 0
    assert day_of_week(MONDAY + timedelta(days=5)) == 6


def test_empty_days_match_every_day():
    rule = _rule()
    for offset in range(7):
        assert select_rule("v1", MONDAY + timedelta(days=offset), [rule]) is rule


def test_weekday_filter():
    weekend = _rule(days_of_week=[0, 6])
    assert select_rule("v1", MONDAY, [weekend]) is None
    assert select_rule("v1", MONDAY + timedelta(days=5), [weekend]) is weekend


def test_date_bounds_are_inclusive():
    rule = _rule(start_date=MONDAY, end_date=MONDAY + timedelta(days=2))
    assert select_rule("v1", MONDAY, [rule]) is rule
    assert select_rule("v1", MONDAY + timedelta(days=2), [rule]) is rule
    assert select_rule("v1", MONDAY - timedelta(days=1), [rule]) is None
    assert select_rule("v1", MONDAY + timedelta(days=3), [rule]) is None


def test_open_ended_bounds():
    assert select_rule("v1", MONDAY, [_rule(start_date=MONDAY - timedelta(days=30))]) is not None
    assert select_rule("v1", MONDAY, [_rule(end_date=MONDAY + timedelta(days=30))]) is not None


def test_inactive_rule_skipped():
    inactive = _rule(id="a", is_active=False)
    active = _rule(id="b")
    assert select_rule("v1", MONDAY, [inactive, active]) is active


def test_first_match_wins_without_stacking():
    first = _rule(id="a", price_modifier_value=Decimal("25"))
    second = _rule(id="b", price_modifier_value=Decimal("50"))
    assert select_rule("v1", MONDAY, [first, second]) is first
    assert select_rule("v1", MONDAY, [second, first]) is second


def test_rules_for_other_venues_ignored():
    other = _rule(id="a", venue_id="v2")
    assert select_rule("v1", MONDAY, [other]) is None


def test_accepts_iso_date_string():
    assert select_rule("v1", "2030-06-03", [_rule(days_of_week=[1])]) is not None


def test_apply_percentage():
    assert apply_rule(Decimal("100"), _rule(price_modifier_value=Decimal("25"))) == Decimal("125")


def test_apply_negative_percentage():
    assert apply_rule(Decimal("80"), _rule(price_modifier_value=Decimal("-25"))) == Decimal("60")


def test_apply_fixed_amount():
    rule = _rule(price_modifier_type="fixed_amount", price_modifier_value=Decimal("-15"))
    assert apply_rule(Decimal("100"), rule) == Decimal("85")


def test_no_rule_keeps_base():
    assert apply_rule(Decimal("50"), None) == Decimal("50")
    assert apply_rule(50, None) == Decimal("50")


def test_unknown_modifier_keeps_base():
    assert apply_rule(Decimal("50"), _rule(price_modifier_type="bogus")) == Decimal("50")

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from venuebook.core.config import get_settings
from venuebook.services.currency import format_currency
from venuebook.services.pricing_rules import HUNDRED, to_decimal
from venuebook.services.repositories import VenueRepository

logger = logging.getLogger(__name__)

MSG_EMPTY = "Please enter a discount code"
MSG_INVALID = "Invalid discount code"
MSG_EXPIRED = "This discount code has expired."
MSG_ERROR = "Could not validate code"


@dataclass(frozen=True)
class DiscountResult:
    discount_amount: Decimal
    message: str
    code: str | None = None

    @property
    def applied(self) -> bool:
        return self.code is not None


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


class DiscountValidator:
    """Looks up a venue's discount code and prices it against a subtotal.

    Never raises: lookup failures yield a zero discount with a message, so a
    booking can always be priced.
    """

    def __init__(self, repo: VenueRepository):
        self.repo = repo

    def validate(
        self,
        code: str | None,
        venue_id: str,
        subtotal,
        *,
        currency: str = "USD",
        now: datetime | None = None,
    ) -> DiscountResult:
        normalized = normalize_code(code)
        if not normalized:
            return DiscountResult(Decimal(0), MSG_EMPTY)

        if now is None:
            now = datetime.now(tz=ZoneInfo(get_settings().timezone))
        elif now.tzinfo is None:
            now = now.replace(tzinfo=ZoneInfo("UTC"))

        try:
            found = self.repo.find_discount_code(normalized, venue_id)
            if found is None or not found.is_active:
                return DiscountResult(Decimal(0), MSG_INVALID)

            expires_at = found.expires_at
            if expires_at is not None:
                # Some backends hand timestamps back naive; they are stored as UTC
                if expires_at.tzinfo is None:
                    expires_at = expires_at.replace(tzinfo=ZoneInfo("UTC"))
                if expires_at < now:
                    return DiscountResult(Decimal(0), MSG_EXPIRED)

            value = to_decimal(found.value)
            if found.discount_type == "percentage":
                amount = to_decimal(subtotal) * value / HUNDRED
            elif found.discount_type == "fixed_amount":
                amount = value
            else:
                logger.warning("Discount code %s has unknown type %r", found.id, found.discount_type)
                return DiscountResult(Decimal(0), MSG_INVALID)
        except Exception:
            logger.exception("Discount lookup failed for code %s on venue %s", normalized, venue_id)
            return DiscountResult(Decimal(0), MSG_ERROR)

        return DiscountResult(
            discount_amount=amount,
            message=f"Discount applied! You saved {format_currency(amount, currency)}",
            code=found.code,
        )

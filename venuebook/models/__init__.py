# Import all models so that SQLAlchemy registers them for metadata.create_all
from venuebook.models.venue import Venue
from venuebook.models.booking import Booking
from venuebook.models.blackout import VenueBlackout
from venuebook.models.pricing_rule import PricingRule
from venuebook.models.discount_code import DiscountCode

__all__ = [
    "Venue",
    "Booking",
    "VenueBlackout",
    "PricingRule",
    "DiscountCode",
]

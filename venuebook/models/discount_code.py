from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from venuebook.db.base import Base
from venuebook.models._mixins import TimestampMixin

DISCOUNT_TYPES = ("percentage", "fixed_amount")


class DiscountCode(Base, TimestampMixin):
    __tablename__ = "discount_codes"
    __table_args__ = (UniqueConstraint("venue_id", "code", name="uq_discount_codes_venue_code"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    venue_id: Mapped[str] = mapped_column(String(36), ForeignKey("venues.id"), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)  # stored upper-case

    discount_type: Mapped[str] = mapped_column(String(32), nullable=False, default="percentage")
    value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

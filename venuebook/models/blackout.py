from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from venuebook.db.base import Base
from venuebook.models._mixins import TimestampMixin

BLACKOUT_REASONS = ("maintenance", "private_event", "holiday", "owner_unavailable")


class VenueBlackout(Base, TimestampMixin):
    __tablename__ = "venue_blackouts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    venue_id: Mapped[str] = mapped_column(String(36), ForeignKey("venues.id"), nullable=False, index=True)

    blocked_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    is_full_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Ignored for full-day blackouts
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True)

    reason: Mapped[str] = mapped_column(String(32), nullable=False, default="maintenance")
    notes: Mapped[str] = mapped_column(String(1000), nullable=False, default="")

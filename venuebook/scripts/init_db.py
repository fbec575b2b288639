from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError

from venuebook.db.base import Base
from venuebook.db.session import engine

# Import models to register with SQLAlchemy
import venuebook.models  # noqa: F401

logger = logging.getLogger(__name__)

# Same statuses as venuebook.models.booking.OCCUPYING_STATUSES. A NULL bound makes
# tsrange unbounded, so rows without a resolved interval stay out of the constraint.
NO_OVERLAP_CONSTRAINT = """
ALTER TABLE bookings
ADD CONSTRAINT bookings_no_overlap
EXCLUDE USING gist (
    venue_id WITH =,
    tsrange(start_at, end_at, '[)') WITH &&
)
WHERE (
    status IN ('slot_reserved', 'pending', 'confirmed')
    AND start_at IS NOT NULL
    AND end_at IS NOT NULL
);
"""


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    is_postgres = engine.dialect.name == "postgresql"

    if is_postgres:
        # Extension needed for exclusion constraints (overlap prevention)
        with engine.begin() as conn:
            conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))

    Base.metadata.create_all(bind=engine)

    if is_postgres:
        # Storage-level guard against two occupying bookings sharing a slot
        try:
            with engine.begin() as conn:
                conn.execute(text(NO_OVERLAP_CONSTRAINT))
        except ProgrammingError:
            logger.info("bookings_no_overlap already present")
    else:
        logger.warning("Dialect %s has no exclusion constraints; overlap protection relies on the service recheck", engine.dialect.name)

    logger.info("DB initialized")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

import logging

from venuebook.core.config import get_settings
from venuebook.db.session import SessionLocal
from venuebook.services.booking_service import expire_reservations


def main() -> int:
    logging.basicConfig(level=get_settings().log_level)
    db = SessionLocal()
    try:
        released = expire_reservations(db)
        if not released:
            print("no_targets")
            return 0
        print(f"expired: {released}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())

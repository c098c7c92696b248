# Scripts/reset_admin_password.py
# Usage (from backend/):
#   python Scripts/reset_admin_password.py
#   python Scripts/reset_admin_password.py --username admin

import argparse

from app.core.config import settings
from app.core.logging import configure_logging
from app.db.session import SessionLocal
from app.models.user import User
from app.services.sessions import reset_password


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--username", default=settings.ADMIN_USERNAME,
                    help="Account to reset (defaults to the designated admin)")
    args = ap.parse_args()

    configure_logging()

    db = SessionLocal()
    try:
        u = db.query(User).filter_by(username=args.username).first()
        if not u:
            raise SystemExit(f"User not found: {args.username}")
        reset_password(db, u.id, settings.ADMIN_INITIAL_PASSWORD)
    finally:
        db.close()

    print(f"DONE. Password of {args.username!r} reset; change required on next login.")


if __name__ == "__main__":
    main()

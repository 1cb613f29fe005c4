"""
Create an operator account, or rotate its password if the email already exists.

    python scripts/create_user.py ops@example.com 's3cret' --name "Ops" --issue-session
"""

import argparse
import logging
from datetime import timedelta

from errorlog.core.config import settings
from errorlog.core.logging import configure_logging
from errorlog.db.session import SyncSessionLocal, init_db_sync
from errorlog.services.user_service import create_user, issue_session


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--name", default=None, help="Display name")
    parser.add_argument(
        "--issue-session",
        action="store_true",
        help="Also print a session token usable as the authjs.session-token cookie",
    )
    parser.add_argument("--session-days", type=int, default=None, help="Session lifetime (default: no expiry)")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging(settings.LOG_LEVEL)
    logging.getLogger(__name__).info("Using database %s", settings.DATABASE_URL)
    init_db_sync()

    with SyncSessionLocal() as db:
        user = create_user(db, args.email, args.password, name=args.name)
        print("User:", user.email, user.id)

        if args.issue_session:
            ttl = timedelta(days=args.session_days) if args.session_days else None
            print("Session token:", issue_session(db, user, ttl=ttl))


if __name__ == "__main__":
    main()

"""
Create the tables, the default operator account and the anonymous account.

    python scripts/seed.py

Set DEFAULT_OWNER_ID to the printed anonymous id to accept events without userId.
"""

import logging

from errorlog.core.config import settings
from errorlog.core.logging import configure_logging
from errorlog.db.session import SyncSessionLocal, init_db_sync
from errorlog.services.user_service import create_user, ensure_anonymous_user, get_user_by_email

logger = logging.getLogger("errorlog.seed")


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    init_db_sync()

    with SyncSessionLocal() as db:
        admin = get_user_by_email(db, settings.DEFAULT_USER_EMAIL)
        if admin is not None:
            logger.info("Default user already exists: %s", admin.email)
        else:
            admin = create_user(
                db,
                settings.DEFAULT_USER_EMAIL,
                settings.DEFAULT_USER_PASSWORD,
                name=settings.DEFAULT_USER_NAME,
            )
            logger.warning("Default user created with the configured password; change it after first login.")

        anonymous = ensure_anonymous_user(db, settings.ANONYMOUS_USER_EMAIL)

    print("Default user:  ", admin.email, admin.id)
    print("Anonymous user:", anonymous.email, anonymous.id)


if __name__ == "__main__":
    main()

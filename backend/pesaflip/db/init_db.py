"""Create all tables. Run on app startup.

SECURITY: Seeds the admin account with a random password (not hardcoded).
The admin must change it after first login.
"""
import logging
import secrets

from pesaflip.db.base import Base
from pesaflip.db.session import engine, SessionLocal
from pesaflip import models  # noqa: F401 - register models
from pesaflip.models.user import User
from pesaflip.core.config import settings
from pesaflip.core.security import get_password_hash

logger = logging.getLogger(__name__)


def create_tables(bind=engine):
    Base.metadata.create_all(bind=bind)


def seed_admin(db) -> str | None:
    """Create the admin user when the users table is empty. Returns the generated password."""
    if db.query(User).count() > 0:
        return None

    default_password = secrets.token_urlsafe(16)
    admin = User(
        phone_number=settings.ADMIN_PHONE_NUMBER,
        name="Administrator",
        hashed_password=get_password_hash(default_password),
        role="admin",
    )
    db.add(admin)
    db.commit()
    return default_password


def init_db():
    create_tables()

    db = SessionLocal()
    try:
        default_password = seed_admin(db)
        if default_password:
            # Print to console (only on initial setup)
            print("\n" + "=" * 70)
            print("DEFAULT ADMIN USER CREATED")
            print("=" * 70)
            print(f"Phone:    {settings.ADMIN_PHONE_NUMBER}")
            print(f"Password: {default_password}")
            print("\nChange this password immediately after first login!")
            print("=" * 70 + "\n")
            logger.warning(f"Seeded admin account {settings.ADMIN_PHONE_NUMBER}")
    finally:
        db.close()

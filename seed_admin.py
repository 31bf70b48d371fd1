#!/usr/bin/env python3
"""
Create the default admin account, or reset its password if it already exists.

Credentials come from SEED_ADMIN_* settings (see .env.example).
"""
import sys

from sqlmodel import Session

from grandvista.config import settings
from grandvista.database import create_db_and_tables, engine
from grandvista.security import hash_password, normalize_email
from grandvista.infrastructure.persistence.sqlalchemy.repositories.admin_repository_sql import SqlAdminRepository


def seed_admin(session: Session, email: str, password: str, full_name: str, phone_number=None) -> str:
    """Returns "created" or "updated"."""
    repo = SqlAdminRepository(session)
    email = normalize_email(email)
    existing = repo.get_by_email(email)
    if existing:
        existing.password_hash = hash_password(password)
        repo.save(existing)
        return "updated"

    repo.create(
        full_name=full_name,
        email=email,
        password_hash=hash_password(password),
        phone_number=phone_number,
    )
    return "created"


def main() -> int:
    print(f"Using database {settings.DATABASE_URL}")
    try:
        create_db_and_tables()
        with Session(engine) as session:
            outcome = seed_admin(
                session,
                email=settings.SEED_ADMIN_EMAIL,
                password=settings.SEED_ADMIN_PASSWORD,
                full_name=settings.SEED_ADMIN_NAME,
                phone_number=settings.SEED_ADMIN_PHONE,
            )
    except Exception as e:
        print(f"✗ Failed to seed admin user: {e}")
        return 1

    if outcome == "updated":
        print(f"✓ Admin {settings.SEED_ADMIN_EMAIL} already existed, password updated")
    else:
        print(f"✓ Admin {settings.SEED_ADMIN_EMAIL} created")
    return 0


if __name__ == "__main__":
    sys.exit(main())

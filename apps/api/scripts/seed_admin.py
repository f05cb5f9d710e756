"""
Seed Admin User

Creates the first GritSync admin, or promotes an existing account to admin.
Role changes through the API need an admin, so run this once per
environment.

Usage:
    cd apps/api
    ADMIN_EMAIL=admin@gritsync.com ADMIN_PASSWORD=... python scripts/seed_admin.py
"""

import asyncio
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import async_session_maker, close_db, init_db
from app.core.security import hash_password
from app.modules.auth.login_attempts import normalize_email
from app.modules.shared.identifiers import generate_grit_id, generate_unique
from app.modules.users.models import UserRole
from app.modules.users.repository import UserRepository

MIN_PASSWORD_LENGTH = 6


async def _seed(db: AsyncSession, email: str, password: str, first_name: str, last_name: str) -> None:
    user = await UserRepository.get_by_email(db, email)

    if user is not None:
        if user.role == UserRole.ADMIN:
            print(f"Admin already exists: {email}")
        else:
            await UserRepository.update_role(db, user, UserRole.ADMIN)
            print(f"Promoted existing user to admin: {email}")
        print(f"  ID: {user.id}")
        return

    grit_id = await generate_unique(
        generate_grit_id,
        lambda candidate: UserRepository.grit_id_exists(db, candidate),
        "GRIT ID",
    )
    admin = await UserRepository.create(
        db,
        email=email,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        grit_id=grit_id,
        role=UserRole.ADMIN,
    )

    print("Admin created successfully!")
    print(f"  Email: {email}")
    print(f"  Name: {first_name} {last_name}")
    print(f"  ID: {admin.id}")
    print(f"  GRIT ID: {grit_id}")


async def seed_admin(email: str, password: str, first_name: str, last_name: str) -> None:
    """Create the admin user if it doesn't exist, else make sure it is an admin."""
    await init_db()
    try:
        async with async_session_maker() as db:
            await _seed(db, email, password, first_name, last_name)
            await db.commit()
    finally:
        await close_db()


def main() -> int:
    email = normalize_email(os.environ.get("ADMIN_EMAIL", ""))
    password = os.environ.get("ADMIN_PASSWORD", "")
    if not email or len(password) < MIN_PASSWORD_LENGTH:
        print(
            "ADMIN_EMAIL and ADMIN_PASSWORD (at least "
            f"{MIN_PASSWORD_LENGTH} characters) must be set"
        )
        return 1

    asyncio.run(
        seed_admin(
            email,
            password,
            os.environ.get("ADMIN_FIRST_NAME", "GritSync"),
            os.environ.get("ADMIN_LAST_NAME", "Admin"),
        )
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

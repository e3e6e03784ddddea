"""
Database seeding script for a development household.

Creates one ADMIN and two MEMBER users plus the default categories, then
prints a bearer token for each user (identity is token-only here).
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.db.session import AsyncSessionLocal, engine, Base
from backend.app.models.user import User
from backend.app.models.enums import UserRole
from backend.app.core.jwt import create_user_token
from backend.app.services.categories import CategoryService
from sqlalchemy import select

SEED_USERS = [
    ("admin@household.local", "Asha", "Rao", UserRole.ADMIN),
    ("ravi@household.local", "Ravi", "Rao", UserRole.MEMBER),
    ("meera@household.local", "Meera", "Rao", UserRole.MEMBER),
]


async def seed_users():
    """
    Seed a household.

    Creates:
    - 1 ADMIN user
    - 2 MEMBER users
    - the default categories (when none exist)
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting household seeding...")

        result = await db.execute(select(User).where(User.role == UserRole.ADMIN))
        if result.scalars().first():
            print("ℹ️  An ADMIN user already exists, skipping user seeding")
        else:
            for email, first_name, last_name, role in SEED_USERS:
                db.add(User(email=email, first_name=first_name, last_name=last_name, role=role))
                print(f"✅ Created {role.value.upper()} user ({email})")
            await db.commit()

        added = await CategoryService.seed_default_categories(db)
        if added:
            print(f"✅ Seeded {added} default categories")

        users = (await db.execute(select(User).order_by(User.id))).scalars().all()
        print("\n🎉 Seeding completed successfully!")
        print("\nDevelopment tokens:")
        for user in users:
            print(f"  - {user.role.value:<6} {user.email}: {create_user_token(user)}")


if __name__ == "__main__":
    asyncio.run(seed_users())

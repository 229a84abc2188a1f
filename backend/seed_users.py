"""
Database seeding script for initial users.

Creates an ADMIN user and an active demo rider for development.
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.core.config import settings
from backend.app.db.session import build_database
from backend.app.models.user import User
from backend.app.models.rider import Rider
from backend.app.models.enums import UserRole, RiderStatus
# Registered so create_all builds every table
from backend.app.models.parcel import Parcel
from backend.app.models.cashout import Cashout
from backend.app.models.earning import Earning
from backend.app.models.payment import Payment
from backend.app.models.tracking_log import TrackingLog
from backend.app.models.audit_log import AuditLog
from sqlalchemy import select

ADMIN_EMAIL = "admin@parcels.local"
RIDER_EMAIL = "rider@parcels.local"


async def seed_users():
    """
    Seed initial users with different roles.

    Creates:
    - 1 ADMIN user
    - 1 RIDER user with an active rider profile in Dhaka
    """
    database = build_database(settings)
    await database.create_all()

    async with database.session() as db:
        print("🌱 Starting user seeding...")

        # Check if ADMIN already exists
        result = await db.execute(select(User).where(User.email == ADMIN_EMAIL))
        if result.scalar_one_or_none():
            print("ℹ️  ADMIN user already exists, skipping seeding")
            await database.dispose()
            return

        now = datetime.now(timezone.utc)

        db.add(User(email=ADMIN_EMAIL, name="Admin", role=UserRole.ADMIN, created_at=now, last_log_in=now))
        print(f"✅ Created ADMIN user ({ADMIN_EMAIL})")

        db.add(User(email=RIDER_EMAIL, name="Demo Rider", role=UserRole.RIDER, created_at=now, last_log_in=now))
        db.add(Rider(
            name="Demo Rider",
            email=RIDER_EMAIL,
            phone="01700000000",
            region="Dhaka",
            district="Dhaka",
            status=RiderStatus.ACTIVE
        ))
        print(f"✅ Created RIDER user with active profile ({RIDER_EMAIL})")

        await db.commit()

    await database.dispose()

    print("\n🎉 User seeding completed successfully!")
    print("\nSign in through the identity provider with one of:")
    print(f"  - ADMIN: {ADMIN_EMAIL}")
    print(f"  - RIDER: {RIDER_EMAIL}")
    print("\nNote: other users are created on first sign-in via POST /v1/users")


if __name__ == "__main__":
    asyncio.run(seed_users())

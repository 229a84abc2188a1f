"""
Test data helpers shared by the test modules.
"""

from uuid import uuid4

from backend.app.core.jwt import create_identity_token
from backend.app.models.enums import UserRole
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import DeliveryStatus
from backend.app.models.user import User


def make_token(email: str, uid: str = None) -> str:
    return create_identity_token({"sub": uid or email, "email": email})


def auth_headers(email: str) -> dict:
    return {"Authorization": f"Bearer {make_token(email)}"}


async def create_user(db, email: str, role: UserRole = UserRole.USER, name: str = None) -> User:
    user = User(email=email, name=name or email.split("@")[0], role=role)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def create_parcel(db, **overrides) -> Parcel:
    fields = {
        "tracking_id": f"TRK-{uuid4().hex[:12].upper()}",
        "title": "Documents",
        "cost": 1000,
        "sender_name": "Sender",
        "sender_region": "Dhaka",
        "receiver_name": "Receiver",
        "receiver_region": "Dhaka",
        "created_by": "sender@test.com",
        "delivery_status": DeliveryStatus.NOT_COLLECTED,
    }
    fields.update(overrides)
    parcel = Parcel(**fields)
    db.add(parcel)
    await db.commit()
    await db.refresh(parcel)
    return parcel


def assigned_parcel_fields(rider_email: str = "rider@test.com", **overrides) -> dict:
    fields = {
        "assigned_rider_name": "Rider One",
        "assigned_rider_email": rider_email,
        "delivery_status": DeliveryStatus.RIDER_ASSIGNED,
    }
    fields.update(overrides)
    return fields

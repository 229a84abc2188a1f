"""
Rider database model.

Users apply to become riders; an admin approves (active) or rejects them.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import RiderStatus


class Rider(Base):
    """
    Rider model.

    A rider is identified by email, the same identity that appears as
    `assigned_rider_email` on parcels and `rider_email` on earnings.
    """
    __tablename__ = "riders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(50), nullable=True)

    # Service area
    region = Column(String(100), nullable=False, index=True)
    district = Column(String(100), nullable=False, index=True)

    # Application documents
    nid = Column(String(100), nullable=True)
    bike_registration = Column(String(100), nullable=True)

    status = Column(Enum(RiderStatus), default=RiderStatus.PENDING, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Rider(id={self.id}, email='{self.email}', status='{self.status.value}')>"

"""
Parcel database model.

A parcel moves forward through its delivery statuses; once delivered it
produces exactly one rider earning.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.parcel_enums import DeliveryStatus, PaymentStatus, ParcelType


class Parcel(Base):
    """
    Parcel model for the delivery platform.

    Invariants (maintained by the delivery status service):
    - delivered_at is set if and only if delivery_status is DELIVERED
    - assigned_rider_email is set whenever a rider has been assigned
    """
    __tablename__ = "parcels"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    tracking_id = Column(String(64), unique=True, nullable=False, index=True)

    # Parcel details
    title = Column(String(255), nullable=False)
    parcel_type = Column(Enum(ParcelType), default=ParcelType.NON_DOCUMENT, nullable=False)
    weight_kg = Column(Float, nullable=True)
    cost = Column(Float, nullable=False)

    # Sender
    sender_name = Column(String(255), nullable=False)
    sender_contact = Column(String(50), nullable=True)
    sender_region = Column(String(100), nullable=False)
    sender_district = Column(String(100), nullable=True)
    sender_address = Column(String(500), nullable=True)

    # Receiver
    receiver_name = Column(String(255), nullable=False)
    receiver_contact = Column(String(50), nullable=True)
    receiver_region = Column(String(100), nullable=False)
    receiver_district = Column(String(100), nullable=True)
    receiver_address = Column(String(500), nullable=True)

    created_by = Column(String(255), nullable=False, index=True)

    # Status
    delivery_status = Column(Enum(DeliveryStatus), default=DeliveryStatus.NOT_COLLECTED, nullable=False, index=True)
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.UNPAID, nullable=False, index=True)
    transaction_id = Column(String(255), nullable=True)

    # Rider assignment
    assigned_rider_name = Column(String(255), nullable=True)
    assigned_rider_email = Column(String(255), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Parcel(id={self.id}, tracking_id='{self.tracking_id}', status='{self.delivery_status.value}')>"

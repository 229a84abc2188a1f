"""
Payment database model.

Records the result of a gateway charge for a parcel.
"""

from sqlalchemy import Column, Integer, Float, String, ForeignKey, DateTime
from sqlalchemy.sql import func
from backend.app.db.session import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    parcel_id = Column(Integer, ForeignKey('parcels.id'), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)

    amount = Column(Float, nullable=False)
    transaction_id = Column(String(255), nullable=False, unique=True)
    payment_method = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<Payment(id={self.id}, parcel_id={self.parcel_id}, amount={self.amount})>"

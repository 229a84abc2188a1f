"""
Earning database model.

Ledger of what each rider is owed per delivered parcel.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.earning_enums import EarningRule, EarningStatus


class Earning(Base):
    """
    Earning model.

    Append-only: created once when its parcel is delivered, never deleted.
    The only permitted mutation is UNPAID -> PAID (with paid_at and cashout_id).
    parcel_id is unique so a parcel can never be paid out twice.
    """
    __tablename__ = "earnings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership
    rider_email = Column(String(255), nullable=False, index=True)
    parcel_id = Column(Integer, ForeignKey('parcels.id'), nullable=False, unique=True, index=True)

    # Financials
    amount = Column(Integer, nullable=False)
    rule = Column(Enum(EarningRule), nullable=False)

    # Settlement
    status = Column(Enum(EarningStatus), default=EarningStatus.UNPAID, nullable=False, index=True)
    cashout_id = Column(Integer, ForeignKey('cashouts.id'), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Earning(id={self.id}, parcel_id={self.parcel_id}, amount={self.amount}, status='{self.status.value}')>"

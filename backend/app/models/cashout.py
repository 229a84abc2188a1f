"""
Cashout database model.

One row per successful rider withdrawal.
"""

from sqlalchemy import Column, Integer, Float, String, DateTime
from sqlalchemy.sql import func
from backend.app.db.session import Base


class Cashout(Base):
    """
    Cashout model.

    settled_amount is the sum of the whole earnings that were marked paid,
    which can be larger than requested_amount.
    """
    __tablename__ = "cashouts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    rider_email = Column(String(255), nullable=False, index=True)

    requested_amount = Column(Float, nullable=False)
    settled_amount = Column(Integer, nullable=False)
    remaining_unpaid = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Cashout(id={self.id}, rider='{self.rider_email}', settled={self.settled_amount})>"

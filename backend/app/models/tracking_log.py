"""
Tracking Log database model.

Chronological events shown to senders when they track a parcel.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.sql import func
from backend.app.db.session import Base


class TrackingLog(Base):
    __tablename__ = "tracking_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    tracking_id = Column(String(64), nullable=False, index=True)
    parcel_id = Column(Integer, ForeignKey('parcels.id'), nullable=True, index=True)

    status = Column(String(50), nullable=False)
    message = Column(String(500), nullable=True)
    updated_by = Column(String(255), nullable=False, default="")

    time = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<TrackingLog(id={self.id}, tracking_id='{self.tracking_id}', status='{self.status}')>"

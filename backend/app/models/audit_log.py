"""
Audit Log Database Model.

Tracks assignments, deliveries, payouts and admin actions for compliance.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for tracking money-moving and admin events.

    Events logged:
    - RIDER_ASSIGNED / DELIVERY_STATUS_UPDATED
    - EARNING_RECORDED / CASHOUT_PROCESSED
    - RIDER_STATUS_CHANGED
    - PAYMENT_RECORDED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_email = Column(String(255), index=True, nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # What it was performed on
    target_type = Column(String(50), nullable=True)
    target_id = Column(String(100), index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email}, target={self.target_id})>"

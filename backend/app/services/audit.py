"""
Audit logging service for tracking delivery, payout and admin events.

Provides centralized logging for compliance and dispute resolution.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    USER_CREATED = "USER_CREATED"

    # Riders
    RIDER_APPLIED = "RIDER_APPLIED"
    RIDER_STATUS_CHANGED = "RIDER_STATUS_CHANGED"

    # Parcels
    PARCEL_CREATED = "PARCEL_CREATED"
    PARCEL_DELETED = "PARCEL_DELETED"
    RIDER_ASSIGNED = "RIDER_ASSIGNED"
    DELIVERY_STATUS_UPDATED = "DELIVERY_STATUS_UPDATED"

    # Money
    EARNING_RECORDED = "EARNING_RECORDED"
    CASHOUT_PROCESSED = "CASHOUT_PROCESSED"
    PAYMENT_RECORDED = "PAYMENT_RECORDED"

    # Sessions
    SESSIONS_REVOKED = "SESSIONS_REVOKED"
    SESSIONS_RESTORED = "SESSIONS_RESTORED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_email: Optional[str] = None,
    target_type: Optional[str] = None,
    target_id: Optional[Any] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Log an event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_email: Verified identity of the caller (None for system events)
        target_type: Kind of entity acted upon ("parcel", "rider", ...)
        target_id: ID of the entity acted upon
        metadata: Additional context as JSON

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_email=actor_email,
        action=action,
        target_type=target_type,
        target_id=str(target_id) if target_id is not None else None,
        meta_data=metadata
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    target_type: Optional[str] = None,
    target_id: Optional[Any] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering, most recent first.
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if target_type:
        query = query.where(AuditLog.target_type == target_type)

    if target_id is not None:
        query = query.where(AuditLog.target_id == str(target_id))

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return result.scalars().all()

"""
Admin API Endpoints.

Delivery stats, earnings reconciliation, session revocation and the audit
trail. Every route here requires the ADMIN role.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.guards import require_admin
from backend.app.core.identity import VerifiedIdentity
from backend.app.core.token_revocation import revoke_identity, clear_identity_revocation
from backend.app.db.session import get_db
from backend.app.domain.earnings import ledger
from backend.app.domain.earnings.calculator import quote_for_parcel
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import DeliveryStatus
from backend.app.schemas.admin import (
    AdminActionResponse, AuditLogResponse, AuditTrailResponse, SessionActionRequest
)
from backend.app.schemas.earning import UnsettledDeliveryResponse
from backend.app.schemas.parcel import StatusCount
from backend.app.services.audit import log_event, AuditAction, get_audit_trail

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/parcels/status-counts", response_model=List[StatusCount])
async def parcel_status_counts(
    identity: VerifiedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Number of parcels in each delivery status.

    Statuses with no parcels are reported with a zero count.
    """
    result = await db.execute(
        select(Parcel.delivery_status, func.count(Parcel.id))
        .group_by(Parcel.delivery_status)
    )
    counts = {status: count for status, count in result.all()}
    return [
        StatusCount(delivery_status=status, count=counts.get(status, 0))
        for status in DeliveryStatus
    ]


@router.get("/earnings/unsettled-deliveries", response_model=List[UnsettledDeliveryResponse])
async def unsettled_deliveries(
    limit: int = Query(100, ge=1, le=500),
    identity: VerifiedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delivered parcels with no earning row, and what each should have earned."""
    parcels = await ledger.find_unsettled_deliveries(db, limit=limit)

    response = []
    for parcel in parcels:
        quote = quote_for_parcel(parcel)
        response.append(UnsettledDeliveryResponse(
            parcel_id=parcel.id,
            tracking_id=parcel.tracking_id,
            rider_email=parcel.assigned_rider_email,
            delivered_at=parcel.delivered_at,
            expected_amount=quote.amount,
            expected_rule=quote.rule
        ))
    return response


@router.post("/users/{email}/revoke-sessions", response_model=AdminActionResponse)
async def revoke_sessions(
    email: str = Path(..., description="User email"),
    request: Optional[SessionActionRequest] = None,
    identity: VerifiedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Refuse every outstanding token issued to an identity.

    Lasts until cleared or until the tokens would have expired anyway.
    """
    email = email.lower()
    await revoke_identity(email)

    audit_log = await log_event(
        db=db,
        action=AuditAction.SESSIONS_REVOKED,
        actor_email=identity.email,
        target_type="user",
        target_id=email,
        metadata={"reason": request.reason} if request and request.reason else None
    )

    return AdminActionResponse(
        success=True,
        message=f"Sessions for '{email}' have been revoked",
        email=email,
        action=AuditAction.SESSIONS_REVOKED,
        audit_log_id=audit_log.id
    )


@router.post("/users/{email}/restore-sessions", response_model=AdminActionResponse)
async def restore_sessions(
    email: str = Path(..., description="User email"),
    request: Optional[SessionActionRequest] = None,
    identity: VerifiedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Lift an identity-wide revocation."""
    email = email.lower()
    await clear_identity_revocation(email)

    audit_log = await log_event(
        db=db,
        action=AuditAction.SESSIONS_RESTORED,
        actor_email=identity.email,
        target_type="user",
        target_id=email,
        metadata={"reason": request.reason} if request and request.reason else None
    )

    return AdminActionResponse(
        success=True,
        message=f"Sessions for '{email}' have been restored",
        email=email,
        action=AuditAction.SESSIONS_RESTORED,
        audit_log_id=audit_log.id
    )


@router.get("/audit-logs", response_model=AuditTrailResponse)
async def get_audit_logs(
    target_type: Optional[str] = Query(None, description="Filter by target type"),
    target_id: Optional[str] = Query(None, description="Filter by target id"),
    action: Optional[str] = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Max results"),
    identity: VerifiedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Audit trail, most recent first."""
    logs = await get_audit_trail(
        db=db,
        target_type=target_type,
        target_id=target_id,
        action=action,
        limit=limit
    )

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )

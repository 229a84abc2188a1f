"""
Rider Application API Endpoints.

Users apply to ride; admins review applications and manage riders.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_identity
from backend.app.core.guards import require_admin
from backend.app.core.identity import VerifiedIdentity
from backend.app.db.session import get_db
from backend.app.domain.riders.rider_service import RiderService
from backend.app.models.enums import RiderStatus
from backend.app.schemas.rider import RiderApply, RiderResponse, RiderStatusUpdate
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/riders", tags=["Riders"])
admin_router = APIRouter(prefix="/admin/riders", tags=["Admin - Riders"])


@router.post("", response_model=RiderResponse, status_code=status.HTTP_201_CREATED)
async def apply_as_rider(
    application: RiderApply,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """Submit a rider application for the calling identity."""
    rider = await RiderService.apply(db, email=identity.email, **application.model_dump())

    await log_event(
        db=db,
        action=AuditAction.RIDER_APPLIED,
        actor_email=identity.email,
        target_type="rider",
        target_id=rider.id
    )

    return rider


@admin_router.get("", response_model=List[RiderResponse])
async def list_riders(
    rider_status: Optional[RiderStatus] = Query(None, alias="status"),
    identity: VerifiedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List rider applications, oldest first (Admin only)."""
    return await RiderService.list_riders(db, rider_status)


@admin_router.get("/available", response_model=List[RiderResponse])
async def list_available_riders(
    district: Optional[str] = Query(None),
    identity: VerifiedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Active riders that can take a parcel in a district (Admin only)."""
    return await RiderService.available_riders(db, district)


@admin_router.patch("/{rider_id}/status", response_model=RiderResponse)
async def change_rider_status(
    rider_id: int = Path(..., description="Rider ID"),
    update: RiderStatusUpdate = ...,
    identity: VerifiedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Approve, reject, deactivate or reactivate a rider (Admin only).

    Approval also promotes the rider's user account to the RIDER role.
    """
    rider = await RiderService.change_status(db, rider_id, update.status)

    await log_event(
        db=db,
        action=AuditAction.RIDER_STATUS_CHANGED,
        actor_email=identity.email,
        target_type="rider",
        target_id=rider.id,
        metadata={"status": rider.status.value}
    )

    return rider

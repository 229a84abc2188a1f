"""
Parcel API Endpoints.

Senders create and manage parcels; admins assign riders.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_identity
from backend.app.core.exceptions import (
    ConflictError,
    InsufficientPermissionsError,
    InvalidStatusError,
)
from backend.app.core.guards import require_admin, resolve_role
from backend.app.core.identity import VerifiedIdentity
from backend.app.db.session import get_db
from backend.app.domain.delivery.status_service import DeliveryStatusService, get_parcel
from backend.app.models.enums import UserRole
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import DeliveryStatus
from backend.app.schemas.parcel import (
    ParcelCreate, ParcelCreateResponse, ParcelResponse, RiderAssignment
)
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/parcels", tags=["Parcels"])


def generate_tracking_id() -> str:
    return f"TRK-{uuid.uuid4().hex[:12].upper()}"


@router.get("", response_model=List[ParcelResponse])
async def list_parcels(
    email: Optional[str] = Query(None, description="Filter by creator email"),
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """
    List parcels, newest first.

    Admins may list everything or filter by creator; everyone else only
    sees the parcels they created.
    """
    role = await resolve_role(db, identity.email)
    if role != UserRole.ADMIN:
        email = identity.email

    query = select(Parcel)
    if email:
        query = query.where(Parcel.created_by == email.lower())
    query = query.order_by(Parcel.created_at.desc(), Parcel.id.desc())

    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=ParcelCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_parcel(
    parcel_data: ParcelCreate,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """Create a parcel owned by the caller; it starts NOT_COLLECTED and UNPAID."""
    now = datetime.now(timezone.utc)
    fields = parcel_data.model_dump()
    fields["tracking_id"] = fields.get("tracking_id") or generate_tracking_id()

    parcel = Parcel(
        **fields,
        created_by=identity.email,
        delivery_status=DeliveryStatus.NOT_COLLECTED,
        created_at=now,
        updated_at=now
    )
    db.add(parcel)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Tracking id already in use", details={"tracking_id": fields["tracking_id"]})
    await db.refresh(parcel)

    await log_event(
        db=db,
        action=AuditAction.PARCEL_CREATED,
        actor_email=identity.email,
        target_type="parcel",
        target_id=parcel.id,
        metadata={"tracking_id": parcel.tracking_id, "cost": parcel.cost}
    )

    return ParcelCreateResponse(id=parcel.id, tracking_id=parcel.tracking_id)


@router.get("/{parcel_id}", response_model=ParcelResponse)
async def get_parcel_detail(
    parcel_id: int = Path(..., description="Parcel ID"),
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """Get a parcel visible to its creator, its assigned rider, or an admin."""
    parcel = await get_parcel(db, parcel_id)

    if identity.email not in (parcel.created_by, parcel.assigned_rider_email):
        if await resolve_role(db, identity.email) != UserRole.ADMIN:
            raise InsufficientPermissionsError("Access denied to this parcel")

    return parcel


@router.delete("/{parcel_id}")
async def delete_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a parcel.

    Only its creator or an admin may delete it, and only before a rider
    has been assigned.
    """
    parcel = await get_parcel(db, parcel_id)

    if parcel.created_by != identity.email:
        if await resolve_role(db, identity.email) != UserRole.ADMIN:
            raise InsufficientPermissionsError("Only the creator can delete this parcel")

    if parcel.delivery_status != DeliveryStatus.NOT_COLLECTED:
        raise InvalidStatusError(
            "Only parcels that are not yet collected can be deleted",
            current_status=parcel.delivery_status.value
        )

    await db.delete(parcel)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Parcel has payments or tracking history and cannot be deleted", details={"id": parcel_id})

    await log_event(
        db=db,
        action=AuditAction.PARCEL_DELETED,
        actor_email=identity.email,
        target_type="parcel",
        target_id=parcel_id
    )

    return {"deleted": True, "id": parcel_id}


@router.patch("/{parcel_id}/assign-rider", response_model=ParcelResponse)
async def assign_rider(
    parcel_id: int = Path(..., description="Parcel ID"),
    assignment: RiderAssignment = ...,
    identity: VerifiedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Assign a rider to a parcel (Admin only)."""
    parcel = await DeliveryStatusService.assign_rider(
        db,
        parcel_id=parcel_id,
        rider_name=assignment.rider_name,
        rider_email=assignment.rider_email,
        assigned_by=identity.email
    )

    await log_event(
        db=db,
        action=AuditAction.RIDER_ASSIGNED,
        actor_email=identity.email,
        target_type="parcel",
        target_id=parcel.id,
        metadata={"rider_email": parcel.assigned_rider_email}
    )

    return parcel

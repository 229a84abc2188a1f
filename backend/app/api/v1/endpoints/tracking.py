"""
Tracking API Endpoints.

Parcel tracking events; status changes add their own events automatically.
"""

from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_identity
from backend.app.core.identity import VerifiedIdentity
from backend.app.db.session import get_db
from backend.app.domain.delivery.status_service import get_parcel
from backend.app.models.tracking_log import TrackingLog
from backend.app.schemas.tracking import TrackingCreate, TrackingCreateResponse, TrackingResponse

router = APIRouter(prefix="/tracking", tags=["Tracking"])


@router.post("", response_model=TrackingCreateResponse, status_code=status.HTTP_201_CREATED)
async def add_tracking_event(
    event: TrackingCreate,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """Append a tracking event."""
    if event.parcel_id is not None:
        await get_parcel(db, event.parcel_id)

    log = TrackingLog(
        tracking_id=event.tracking_id,
        parcel_id=event.parcel_id,
        status=event.status,
        message=event.message,
        updated_by=event.updated_by or identity.email,
        time=datetime.now(timezone.utc)
    )
    db.add(log)
    await db.commit()
    await db.refresh(log)

    return TrackingCreateResponse(inserted_id=log.id)


@router.get("/{tracking_id}", response_model=List[TrackingResponse])
async def get_tracking_history(
    tracking_id: str = Path(..., description="Parcel tracking id"),
    db: AsyncSession = Depends(get_db)
):
    """Tracking events for a parcel, oldest first."""
    result = await db.execute(
        select(TrackingLog)
        .where(TrackingLog.tracking_id == tracking_id)
        .order_by(TrackingLog.time.asc(), TrackingLog.id.asc())
    )
    return result.scalars().all()

"""
Rider API Endpoints.

Riders move their assigned parcels forward, see what they have earned and
cash out. Every operation acts on the caller's verified email.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_identity
from backend.app.core.identity import VerifiedIdentity
from backend.app.db.session import get_db
from backend.app.domain.delivery.status_service import DeliveryStatusService
from backend.app.domain.earnings import ledger
from backend.app.domain.earnings.calculator import summarize_rider_earnings
from backend.app.domain.earnings.cashout_service import CashoutService
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import DeliveryStatus
from backend.app.schemas.earning import (
    CashoutRequest, CashoutResponse, EarningsSummaryResponse, LedgerResponse
)
from backend.app.schemas.parcel import DeliveryStatusUpdate, ParcelResponse
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/rider", tags=["Rider"])


@router.get("/parcels", response_model=List[ParcelResponse])
async def list_my_parcels(
    delivery_status: Optional[DeliveryStatus] = Query(None, description="Filter by delivery status"),
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """Parcels assigned to the calling rider, most recently assigned first."""
    query = select(Parcel).where(Parcel.assigned_rider_email == identity.email)
    if delivery_status:
        query = query.where(Parcel.delivery_status == delivery_status)
    query = query.order_by(Parcel.assigned_at.desc(), Parcel.id.desc())

    result = await db.execute(query)
    return result.scalars().all()


@router.patch("/parcels/{parcel_id}/status", response_model=ParcelResponse)
async def update_delivery_status(
    parcel_id: int = Path(..., description="Parcel ID"),
    update: DeliveryStatusUpdate = ...,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """
    Advance an assigned parcel to in_transit or delivered.

    Delivery records the rider's earning exactly once.
    """
    previous = await db.scalar(select(Parcel.delivery_status).where(Parcel.id == parcel_id))

    parcel = await DeliveryStatusService.advance_delivery_status(
        db,
        parcel_id=parcel_id,
        new_status=update.delivery_status,
        identity=identity
    )

    if previous != parcel.delivery_status:
        await log_event(
            db=db,
            action=AuditAction.DELIVERY_STATUS_UPDATED,
            actor_email=identity.email,
            target_type="parcel",
            target_id=parcel.id,
            metadata={
                "from": previous.value if previous else None,
                "to": parcel.delivery_status.value
            }
        )

        if parcel.delivery_status == DeliveryStatus.DELIVERED:
            earning = await ledger.get_earning_for_parcel(db, parcel.id)
            await log_event(
                db=db,
                action=AuditAction.EARNING_RECORDED,
                target_type="earning",
                target_id=earning.id if earning else None,
                metadata={
                    "parcel_id": parcel.id,
                    "rider_email": identity.email,
                    "amount": earning.amount if earning else None
                }
            )

    return parcel


@router.get("/earnings", response_model=EarningsSummaryResponse)
async def get_my_earnings(
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """Earnings recomputed from the rider's delivered parcels."""
    return await summarize_rider_earnings(db, identity.email)


@router.get("/ledger", response_model=LedgerResponse)
async def get_my_ledger(
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """The rider's ledger rows with paid and unpaid totals."""
    earnings = await ledger.list_rider_earnings(db, identity.email)
    totals = await ledger.rider_balance(db, identity.email)
    return LedgerResponse(
        earnings=earnings,
        unpaid_total=totals["unpaid"],
        paid_total=totals["paid"]
    )


@router.post("/cashout", response_model=CashoutResponse)
async def cash_out(
    request: CashoutRequest,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """Withdraw unpaid earnings, oldest first, in whole earnings."""
    result = await CashoutService.process_cashout(db, identity.email, request.amount)

    await log_event(
        db=db,
        action=AuditAction.CASHOUT_PROCESSED,
        actor_email=identity.email,
        target_type="cashout",
        target_id=result.cashout_id,
        metadata={
            "requested": result.paid_amount,
            "settled": result.settled_amount,
            "earning_ids": result.earning_ids
        }
    )

    return result

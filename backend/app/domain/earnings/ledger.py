"""
Earnings Ledger (Domain Logic).

Append-only store of rider earnings. Rows are inserted once per delivered
parcel and only ever move UNPAID -> PAID through a conditional bulk update.
Callers own the transaction: nothing here commits.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ConflictError
from backend.app.domain.earnings.calculator import EarningQuote
from backend.app.models.earning import Earning
from backend.app.models.earning_enums import EarningStatus
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import DeliveryStatus

logger = logging.getLogger("parcel_delivery.ledger")


async def get_earning_for_parcel(db: AsyncSession, parcel_id: int) -> Optional[Earning]:
    result = await db.execute(select(Earning).where(Earning.parcel_id == parcel_id))
    return result.scalar_one_or_none()


async def record_earning(db: AsyncSession, parcel: Parcel, quote: EarningQuote) -> Earning:
    """
    Append the earning for a delivered parcel.

    Returns the existing row if the parcel already has one. A unique
    violation on parcel_id (another writer got there first) aborts the
    current transaction and surfaces as ConflictError.

    Args:
        db: Database session (transaction managed by caller)
        parcel: The parcel that was just delivered
        quote: Output of the earnings calculator for this parcel

    Returns:
        The parcel's Earning
    """
    parcel_id = parcel.id
    existing = await get_earning_for_parcel(db, parcel_id)
    if existing:
        return existing

    earning = Earning(
        rider_email=parcel.assigned_rider_email,
        parcel_id=parcel_id,
        amount=quote.amount,
        rule=quote.rule,
        status=EarningStatus.UNPAID,
        created_at=datetime.now(timezone.utc),
        paid_at=None
    )
    db.add(earning)

    try:
        await db.flush()
    except IntegrityError:
        # rollback expires every loaded instance, parcel included
        await db.rollback()
        logger.warning("Duplicate earning insert rejected for parcel %s", parcel_id)
        raise ConflictError(
            "Earning for this parcel was recorded by a concurrent request",
            details={"parcel_id": parcel_id}
        )

    logger.info(
        "Earning recorded: parcel=%s rider=%s amount=%s rule=%s",
        parcel_id, earning.rider_email, earning.amount, earning.rule.value
    )
    return earning


async def list_unpaid_earnings(
    db: AsyncSession,
    rider_email: str,
    for_update: bool = False
) -> List[Earning]:
    """
    Unpaid earnings for a rider, oldest first (FIFO).

    Ties on created_at are broken by id so the order is total.
    With for_update=True the rows are locked on databases that support it.
    """
    query = select(Earning).where(
        Earning.rider_email == rider_email,
        Earning.status == EarningStatus.UNPAID
    ).order_by(Earning.created_at.asc(), Earning.id.asc())

    if for_update:
        query = query.with_for_update()

    result = await db.execute(query)
    return list(result.scalars().all())


async def mark_earnings_paid(
    db: AsyncSession,
    earning_ids: Sequence[int],
    cashout_id: Optional[int] = None,
    paid_at: Optional[datetime] = None
) -> int:
    """
    Mark earnings paid in one statement.

    Only rows still UNPAID are touched, so two payouts racing over the same
    rows cannot both succeed. The caller compares the returned row count
    with len(earning_ids).

    Returns:
        Number of rows moved to PAID
    """
    if not earning_ids:
        return 0

    stmt = (
        update(Earning)
        .where(
            Earning.id.in_(list(earning_ids)),
            Earning.status == EarningStatus.UNPAID
        )
        .values(
            status=EarningStatus.PAID,
            paid_at=paid_at or datetime.now(timezone.utc),
            cashout_id=cashout_id
        )
        .execution_options(synchronize_session="evaluate")
    )
    result = await db.execute(stmt)
    return result.rowcount


async def list_rider_earnings(
    db: AsyncSession,
    rider_email: str,
    status: Optional[EarningStatus] = None
) -> List[Earning]:
    """All ledger rows for a rider, newest first."""
    query = select(Earning).where(Earning.rider_email == rider_email)
    if status:
        query = query.where(Earning.status == status)
    query = query.order_by(Earning.created_at.desc(), Earning.id.desc())

    result = await db.execute(query)
    return list(result.scalars().all())


async def rider_balance(db: AsyncSession, rider_email: str) -> Dict[str, int]:
    """Sum of the rider's earnings grouped by settlement status."""
    query = select(Earning.status, func.coalesce(func.sum(Earning.amount), 0)).where(
        Earning.rider_email == rider_email
    ).group_by(Earning.status)

    result = await db.execute(query)
    totals = {EarningStatus.UNPAID.value: 0, EarningStatus.PAID.value: 0}
    for status, amount in result.all():
        totals[status.value] = int(amount)
    return totals


async def find_unsettled_deliveries(db: AsyncSession, limit: int = 100) -> List[Parcel]:
    """
    Delivered parcels that have an assigned rider but no earning.

    These are the gaps a reconciliation sweep has to backfill.
    """
    query = (
        select(Parcel)
        .outerjoin(Earning, Earning.parcel_id == Parcel.id)
        .where(
            Parcel.delivery_status == DeliveryStatus.DELIVERED,
            Parcel.assigned_rider_email.is_not(None),
            Earning.id.is_(None)
        )
        .order_by(Parcel.delivered_at.asc(), Parcel.id.asc())
        .limit(limit)
    )
    result = await db.execute(query)
    return list(result.scalars().all())

"""
Earnings Calculator (Domain Logic).

Pure payout computation for a delivered parcel, plus the rider earnings
summary that re-derives the same numbers from delivered parcels.

Payout rule:
    percentage = 0.8 if sender_region == receiver_region else 0.3
    amount     = cost * percentage, rounded half-up to a whole unit

Rounding is done with Decimal(str(cost)) so the result does not depend on
binary float artefacts: 2.5 -> 3, 3.5 -> 4, 1000 * 0.3 -> 300.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.earning_enums import EarningRule
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import DeliveryStatus

SAME_REGION_PERCENTAGE = Decimal("0.8")
DIFFERENT_REGION_PERCENTAGE = Decimal("0.3")


@dataclass(frozen=True)
class EarningQuote:
    """Computed payout for one delivery."""
    amount: int
    rule: EarningRule
    percentage: Decimal


@dataclass
class DeliveryEarning:
    parcel_id: int
    tracking_id: str
    cost: float
    sender_region: str
    receiver_region: str
    rule: EarningRule
    amount: int
    delivered_at: Optional[datetime]


@dataclass
class EarningsSummary:
    total: int = 0
    deliveries: List[DeliveryEarning] = field(default_factory=list)


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_earning(cost: float, sender_region: str, receiver_region: str) -> EarningQuote:
    """
    Compute the rider payout for a parcel.

    Regions are compared exactly as stored.
    """
    if sender_region == receiver_region:
        rule = EarningRule.SAME_REGION
        percentage = SAME_REGION_PERCENTAGE
    else:
        rule = EarningRule.DIFFERENT_REGION
        percentage = DIFFERENT_REGION_PERCENTAGE

    amount = round_half_up(Decimal(str(cost)) * percentage)
    return EarningQuote(amount=amount, rule=rule, percentage=percentage)


def quote_for_parcel(parcel: Parcel) -> EarningQuote:
    return calculate_earning(parcel.cost, parcel.sender_region, parcel.receiver_region)


async def summarize_rider_earnings(db: AsyncSession, rider_email: str) -> EarningsSummary:
    """
    Recompute a rider's earnings from their delivered parcels.

    This does not read the ledger; the totals must match the rider's
    Earning rows for the same parcels.
    """
    query = select(Parcel).where(
        Parcel.assigned_rider_email == rider_email,
        Parcel.delivery_status == DeliveryStatus.DELIVERED
    ).order_by(Parcel.delivered_at.desc(), Parcel.id.desc())

    result = await db.execute(query)
    summary = EarningsSummary()

    for parcel in result.scalars().all():
        quote = quote_for_parcel(parcel)
        summary.deliveries.append(DeliveryEarning(
            parcel_id=parcel.id,
            tracking_id=parcel.tracking_id,
            cost=parcel.cost,
            sender_region=parcel.sender_region,
            receiver_region=parcel.receiver_region,
            rule=quote.rule,
            amount=quote.amount,
            delivered_at=parcel.delivered_at
        ))
        summary.total += quote.amount

    return summary

"""
Cash-out Service (Domain Logic).

Settles a rider's unpaid earnings against a requested withdrawal.

Flow:
1. Validate the requested amount
2. Load unpaid earnings oldest first (row locks where supported)
3. Reject if nothing is unpaid or the request exceeds the unpaid total
4. Select whole earnings FIFO while the remaining request is positive
5. Insert the Cashout and mark the selection paid in one conditional update
6. Commit, or roll back everything if a concurrent payout touched the rows
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    ConflictError,
    InsufficientFundsError,
    InvalidInputError,
)
from backend.app.domain.earnings import ledger
from backend.app.models.cashout import Cashout
from backend.app.models.earning import Earning

logger = logging.getLogger("parcel_delivery.cashout")


@dataclass
class CashoutResult:
    paid_amount: float
    settled_amount: int
    remaining_unpaid: int
    cashout_id: int
    earning_ids: List[int] = field(default_factory=list)


def select_earnings_for_payout(earnings: Sequence[Earning], amount: float) -> List[Earning]:
    """
    Pick whole earnings in order until the request is covered.

    An earning is taken while the remaining amount is still positive before
    subtracting it, so the selection can overshoot the request. Earnings are
    never split. For amounts [100, 200, 150] and a request of 250 the
    first two are selected (settling 300).
    """
    selected = []
    remaining = amount
    for earning in earnings:
        if remaining <= 0:
            break
        selected.append(earning)
        remaining -= earning.amount
    return selected


def validate_amount(amount) -> float:
    if amount is None or isinstance(amount, bool):
        raise InvalidInputError("Cash-out amount is required", details={"field": "amount"})
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise InvalidInputError("Cash-out amount must be a number", details={"field": "amount"})
    if not math.isfinite(value) or value <= 0:
        raise InvalidInputError("Cash-out amount must be positive", details={"field": "amount", "value": value})
    return value


class CashoutService:

    @staticmethod
    async def process_cashout(db: AsyncSession, rider_email: str, amount) -> CashoutResult:
        """
        Pay out a rider's oldest unpaid earnings.

        Args:
            db: Database session; this method commits or rolls back
            rider_email: Verified identity of the rider
            amount: Requested withdrawal amount (must be positive)

        Returns:
            CashoutResult. paid_amount echoes the request; settled_amount is
            the sum of earnings marked paid; remaining_unpaid is what is
            still unpaid in the ledger afterwards.

        Raises:
            InvalidInputError: amount missing or not positive
            InsufficientFundsError: nothing unpaid, or amount > unpaid total
            ConflictError: a concurrent payout settled some of the same rows
        """
        requested = validate_amount(amount)

        unpaid = await ledger.list_unpaid_earnings(db, rider_email, for_update=True)
        total_unpaid = sum(earning.amount for earning in unpaid)

        if not unpaid or requested > total_unpaid:
            await db.rollback()
            raise InsufficientFundsError(requested=requested, available=total_unpaid)

        selected = select_earnings_for_payout(unpaid, requested)
        settled_amount = sum(earning.amount for earning in selected)
        earning_ids = [earning.id for earning in selected]

        cashout = Cashout(
            rider_email=rider_email,
            requested_amount=requested,
            settled_amount=settled_amount,
            remaining_unpaid=total_unpaid - settled_amount,
            created_at=datetime.now(timezone.utc)
        )
        db.add(cashout)
        await db.flush()

        updated = await ledger.mark_earnings_paid(
            db, earning_ids, cashout_id=cashout.id, paid_at=cashout.created_at
        )
        if updated != len(earning_ids):
            await db.rollback()
            logger.warning(
                "Cash-out race for rider %s: expected %s rows, updated %s",
                rider_email, len(earning_ids), updated
            )
            raise ConflictError(
                "Earnings were settled by a concurrent cash-out, please retry",
                details={"expected": len(earning_ids), "updated": updated}
            )

        await db.commit()

        logger.info(
            "Cash-out processed: rider=%s requested=%s settled=%s earnings=%s",
            rider_email, requested, settled_amount, earning_ids
        )

        return CashoutResult(
            paid_amount=requested,
            settled_amount=settled_amount,
            remaining_unpaid=total_unpaid - settled_amount,
            cashout_id=cashout.id,
            earning_ids=earning_ids
        )

"""
Payment Service (Domain Logic).

Records gateway results against parcels.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ConflictError, InvalidInputError
from backend.app.domain.delivery.status_service import get_parcel
from backend.app.domain.payments.gateway import PaymentGateway, PaymentIntent
from backend.app.models.parcel_enums import PaymentStatus
from backend.app.models.payment import Payment

logger = logging.getLogger("parcel_delivery.payments")


class PaymentService:

    @staticmethod
    async def create_intent(gateway: PaymentGateway, amount_in_cents, currency: str) -> PaymentIntent:
        """Validate the amount and ask the gateway for a charge intent."""
        if isinstance(amount_in_cents, bool) or not isinstance(amount_in_cents, int) or amount_in_cents <= 0:
            raise InvalidInputError("Invalid payment amount", details={"amount_in_cents": amount_in_cents})
        return await gateway.create_payment_intent(amount_in_cents, currency)

    @staticmethod
    async def record_payment(
        db: AsyncSession,
        parcel_id: int,
        email: str,
        amount: float,
        transaction_id: str,
        payment_method: Optional[str] = None
    ) -> Payment:
        """
        Save a payment and mark its parcel paid.

        Both writes commit together; a repeated transaction id is rejected.
        """
        parcel = await get_parcel(db, parcel_id)

        now = datetime.now(timezone.utc)
        payment = Payment(
            parcel_id=parcel.id,
            email=email,
            amount=amount,
            transaction_id=transaction_id,
            payment_method=payment_method,
            created_at=now
        )
        db.add(payment)

        parcel.payment_status = PaymentStatus.PAID
        parcel.transaction_id = transaction_id
        parcel.updated_at = now

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("Payment already recorded", details={"transaction_id": transaction_id})

        await db.refresh(payment)
        logger.info("Payment %s recorded for parcel %s", transaction_id, parcel.id)
        return payment

    @staticmethod
    async def list_payments(db: AsyncSession, email: Optional[str] = None) -> List[Payment]:
        """Payments newest first, optionally for one payer."""
        query = select(Payment)
        if email:
            query = query.where(Payment.email == email)
        query = query.order_by(Payment.created_at.desc(), Payment.id.desc())
        result = await db.execute(query)
        return list(result.scalars().all())

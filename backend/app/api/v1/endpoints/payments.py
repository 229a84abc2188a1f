"""
Payment API Endpoints.

Create gateway charge intents and record their results.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.dependencies import get_current_identity
from backend.app.core.guards import resolve_role
from backend.app.core.identity import VerifiedIdentity
from backend.app.db.session import get_db
from backend.app.domain.payments.gateway import PaymentGateway
from backend.app.domain.payments.payment_service import PaymentService
from backend.app.models.enums import UserRole
from backend.app.schemas.payment import (
    PaymentCreate, PaymentCreateResponse, PaymentIntentRequest,
    PaymentIntentResponse, PaymentResponse
)
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway


@router.post("/create-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    intent_request: PaymentIntentRequest,
    identity: VerifiedIdentity = Depends(get_current_identity),
    gateway: PaymentGateway = Depends(get_payment_gateway)
):
    """Create a card payment intent and hand its client secret to the caller."""
    intent = await PaymentService.create_intent(gateway, intent_request.amount_in_cents, settings.payment_currency)
    return PaymentIntentResponse(client_secret=intent.client_secret, intent_id=intent.intent_id)


@router.post("", response_model=PaymentCreateResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    payment_data: PaymentCreate,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """Save a payment result and mark the parcel paid."""
    payment = await PaymentService.record_payment(
        db,
        parcel_id=payment_data.parcel_id,
        email=payment_data.email.lower(),
        amount=payment_data.amount,
        transaction_id=payment_data.transaction_id,
        payment_method=payment_data.payment_method
    )

    await log_event(
        db=db,
        action=AuditAction.PAYMENT_RECORDED,
        actor_email=identity.email,
        target_type="parcel",
        target_id=payment.parcel_id,
        metadata={"transaction_id": payment.transaction_id, "amount": payment.amount}
    )

    return PaymentCreateResponse(inserted_id=payment.id)


@router.get("", response_model=List[PaymentResponse])
async def list_payments(
    email: Optional[str] = Query(None, description="Filter by payer email"),
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """Payment history, newest first. Non-admins only see their own."""
    if await resolve_role(db, identity.email) != UserRole.ADMIN:
        email = identity.email
    return await PaymentService.list_payments(db, email.lower() if email else None)

"""
Payment schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional, Any


class PaymentIntentRequest(BaseModel):
    # Validated by the payment service so bad amounts are ERR_INVALID_INPUT
    amount_in_cents: Optional[Any] = None


class PaymentIntentResponse(BaseModel):
    client_secret: str
    intent_id: str


class PaymentCreate(BaseModel):
    parcel_id: int
    email: EmailStr
    amount: float = Field(..., gt=0)
    transaction_id: str = Field(..., min_length=1, max_length=255)
    payment_method: Optional[str] = Field(None, max_length=50)


class PaymentCreateResponse(BaseModel):
    success: bool = True
    inserted_id: int


class PaymentResponse(BaseModel):
    id: int
    parcel_id: int
    email: str
    amount: float
    transaction_id: str
    payment_method: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True

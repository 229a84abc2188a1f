"""
Earning and cash-out schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional, Union
from backend.app.models.earning_enums import EarningRule, EarningStatus


class EarningResponse(BaseModel):
    """Schema for a ledger row."""
    id: int
    parcel_id: int
    rider_email: str
    amount: int
    rule: EarningRule
    status: EarningStatus
    cashout_id: Optional[int]
    created_at: datetime
    paid_at: Optional[datetime]

    class Config:
        from_attributes = True


class LedgerResponse(BaseModel):
    earnings: List[EarningResponse]
    unpaid_total: int
    paid_total: int


class DeliveryEarningResponse(BaseModel):
    """One delivered parcel with its recomputed payout."""
    parcel_id: int
    tracking_id: str
    cost: float
    sender_region: str
    receiver_region: str
    rule: EarningRule
    amount: int
    delivered_at: Optional[datetime]

    class Config:
        from_attributes = True


class EarningsSummaryResponse(BaseModel):
    total: int
    deliveries: List[DeliveryEarningResponse]

    class Config:
        from_attributes = True


class CashoutRequest(BaseModel):
    """
    Requested withdrawal.

    Positivity is checked by the cash-out service so it reports
    ERR_INVALID_INPUT rather than a schema error.
    """
    amount: Optional[Union[int, float]] = Field(None, description="Amount to withdraw")


class CashoutResponse(BaseModel):
    paid_amount: float
    settled_amount: int
    remaining_unpaid: int
    cashout_id: int
    earning_ids: List[int]

    class Config:
        from_attributes = True


class UnsettledDeliveryResponse(BaseModel):
    """Delivered parcel missing its earning, with the amount it should have."""
    parcel_id: int
    tracking_id: str
    rider_email: str
    delivered_at: Optional[datetime]
    expected_amount: int
    expected_rule: EarningRule

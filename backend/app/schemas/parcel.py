"""
Parcel Pydantic schemas.

Defines request and response models for parcels and delivery status.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from backend.app.models.parcel_enums import DeliveryStatus, PaymentStatus, ParcelType


class ParcelCreate(BaseModel):
    """Schema for creating a new parcel."""
    tracking_id: Optional[str] = Field(None, max_length=64, description="Client supplied tracking id")
    title: str = Field(..., min_length=1, max_length=255)
    parcel_type: ParcelType = ParcelType.NON_DOCUMENT
    weight_kg: Optional[float] = Field(None, gt=0, description="Weight in kilograms")
    cost: float = Field(..., ge=0, description="Delivery cost in currency minor units")

    sender_name: str = Field(..., min_length=1, max_length=255)
    sender_contact: Optional[str] = Field(None, max_length=50)
    sender_region: str = Field(..., min_length=1, max_length=100)
    sender_district: Optional[str] = Field(None, max_length=100)
    sender_address: Optional[str] = Field(None, max_length=500)

    receiver_name: str = Field(..., min_length=1, max_length=255)
    receiver_contact: Optional[str] = Field(None, max_length=50)
    receiver_region: str = Field(..., min_length=1, max_length=100)
    receiver_district: Optional[str] = Field(None, max_length=100)
    receiver_address: Optional[str] = Field(None, max_length=500)


class ParcelCreateResponse(BaseModel):
    success: bool = True
    id: int
    tracking_id: str


class ParcelResponse(BaseModel):
    """Schema for parcel response."""
    id: int
    tracking_id: str
    title: str
    parcel_type: ParcelType
    weight_kg: Optional[float]
    cost: float
    sender_name: str
    sender_contact: Optional[str]
    sender_region: str
    sender_district: Optional[str]
    sender_address: Optional[str]
    receiver_name: str
    receiver_contact: Optional[str]
    receiver_region: str
    receiver_district: Optional[str]
    receiver_address: Optional[str]
    created_by: str
    delivery_status: DeliveryStatus
    payment_status: PaymentStatus
    transaction_id: Optional[str]
    assigned_rider_name: Optional[str]
    assigned_rider_email: Optional[str]
    created_at: datetime
    assigned_at: Optional[datetime]
    updated_at: datetime
    delivered_at: Optional[datetime]

    class Config:
        from_attributes = True


class RiderAssignment(BaseModel):
    """
    Schema for assigning a rider.

    Fields are optional here so missing values reach the delivery service
    and come back as ERR_INVALID_INPUT.
    """
    rider_name: Optional[str] = Field(None, max_length=255)
    rider_email: Optional[EmailStr] = None


class DeliveryStatusUpdate(BaseModel):
    """Schema for a rider moving their parcel forward."""
    delivery_status: str = Field(..., description="in_transit or delivered")


class StatusCount(BaseModel):
    delivery_status: DeliveryStatus
    count: int

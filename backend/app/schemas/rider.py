"""
Rider Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from backend.app.models.enums import RiderStatus


class RiderApply(BaseModel):
    """Schema for a rider application; the email comes from the caller's identity."""
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    region: str = Field(..., min_length=1, max_length=100)
    district: str = Field(..., min_length=1, max_length=100)
    nid: Optional[str] = Field(None, max_length=100)
    bike_registration: Optional[str] = Field(None, max_length=100)


class RiderStatusUpdate(BaseModel):
    status: RiderStatus


class RiderResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str]
    region: str
    district: str
    status: RiderStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

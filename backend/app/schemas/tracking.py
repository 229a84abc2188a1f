"""
Tracking schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class TrackingCreate(BaseModel):
    tracking_id: str = Field(..., min_length=1, max_length=64)
    parcel_id: Optional[int] = None
    status: str = Field(..., min_length=1, max_length=50)
    message: Optional[str] = Field(None, max_length=500)
    updated_by: str = Field(default="", max_length=255)


class TrackingCreateResponse(BaseModel):
    success: bool = True
    inserted_id: int


class TrackingResponse(BaseModel):
    id: int
    tracking_id: str
    parcel_id: Optional[int]
    status: str
    message: Optional[str]
    updated_by: str
    time: datetime

    class Config:
        from_attributes = True

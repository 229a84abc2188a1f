"""
User Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional
from backend.app.models.enums import UserRole


class UserCreate(BaseModel):
    """
    Schema for first sign-in.

    The email comes from the verified identity and role is not accepted
    from clients; everyone starts as USER.
    """
    name: Optional[str] = Field(None, max_length=255)
    photo_url: Optional[str] = Field(None, max_length=500)


class UserUpsertResponse(BaseModel):
    message: str
    inserted: bool
    id: int


class UserRoleResponse(BaseModel):
    email: str
    role: UserRole


class LogoutResponse(BaseModel):
    success: bool
    message: str

"""
User API Endpoints.

Profiles are created on first sign-in with the identity provider.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Path
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_identity, security
from backend.app.core.guards import resolve_role
from backend.app.core.identity import VerifiedIdentity
from backend.app.core.token_revocation import revoke_token
from backend.app.db.session import get_db
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.schemas.user import LogoutResponse, UserCreate, UserRoleResponse, UserUpsertResponse
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=UserUpsertResponse)
async def create_user(
    user_data: UserCreate,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """
    Create the caller's profile if it does not exist yet.

    Existing users only get last_log_in refreshed.
    """
    now = datetime.now(timezone.utc)
    result = await db.execute(select(User).where(User.email == identity.email))
    user = result.scalar_one_or_none()

    if user:
        user.last_log_in = now
        await db.commit()
        return UserUpsertResponse(message="User already exists", inserted=False, id=user.id)

    user = User(
        email=identity.email,
        name=user_data.name,
        photo_url=user_data.photo_url,
        role=UserRole.USER,
        created_at=now,
        last_log_in=now
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    await log_event(
        db=db,
        action=AuditAction.USER_CREATED,
        actor_email=identity.email,
        target_type="user",
        target_id=user.id
    )

    return UserUpsertResponse(message="User created", inserted=True, id=user.id)


@router.get("/{email}/role", response_model=UserRoleResponse)
async def get_user_role(
    email: str = Path(..., description="User email"),
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """Role for an email; unknown emails report the default USER role."""
    email = email.lower()
    return UserRoleResponse(email=email, role=await resolve_role(db, email))


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    identity: VerifiedIdentity = Depends(get_current_identity)
):
    """Revoke the bearer token used for this request."""
    revoked = await revoke_token(credentials.credentials, identity.email)
    return LogoutResponse(success=revoked, message="Logged out" if revoked else "Could not revoke token")

"""
Security guards for role-based access control.

Roles are not carried in identity tokens; they are looked up in the users
table for the verified email on every request.
"""

from typing import List
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.core.dependencies import get_current_identity
from backend.app.core.exceptions import InsufficientPermissionsError
from backend.app.core.identity import VerifiedIdentity
from backend.app.db.session import get_db
from backend.app.models.enums import UserRole
from backend.app.models.user import User


async def resolve_role(db: AsyncSession, email: str) -> UserRole:
    """Role of the user with this email; unknown identities are plain users."""
    result = await db.execute(select(User.role).where(User.email == email))
    role = result.scalar_one_or_none()
    return role or UserRole.USER


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/admin/riders")
        async def list_riders(identity: VerifiedIdentity = Depends(require_role([UserRole.ADMIN]))):
            ...

    Raises:
        InsufficientPermissionsError (403) if the caller's role is not allowed
    """
    async def role_checker(
        identity: VerifiedIdentity = Depends(get_current_identity),
        db: AsyncSession = Depends(get_db)
    ) -> VerifiedIdentity:
        role = await resolve_role(db, identity.email)

        if role not in allowed_roles:
            raise InsufficientPermissionsError(
                f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}",
                details={"role": role.value}
            )

        return identity

    return role_checker


require_admin = require_role([UserRole.ADMIN])

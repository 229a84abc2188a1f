"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with bearer tokens.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from backend.app.core.identity import Authenticator, VerifiedIdentity

# HTTP Bearer security scheme
security = HTTPBearer()


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    authenticator: Authenticator = Depends(get_authenticator)
) -> VerifiedIdentity:
    """
    FastAPI dependency resolving the caller's verified identity.

    Raises:
        AuthenticationError / TokenRevokedError (401) if the token is refused
    """
    return await authenticator.verify(credentials.credentials)

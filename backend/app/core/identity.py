"""
Identity verification.

The identity provider issues bearer tokens; an `Authenticator` turns one
into a `VerifiedIdentity` or refuses it. Core operations only ever see the
verified identity, never the raw token.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from backend.app.core.exceptions import AuthenticationError, TokenRevokedError
from backend.app.core.jwt import decode_identity_token
from backend.app.core.token_revocation import is_token_revoked, is_identity_revoked


@dataclass(frozen=True)
class VerifiedIdentity:
    """A caller whose token has been verified, carrying its email claim."""
    email: str
    uid: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict, compare=False)


class Authenticator(ABC):
    """Pluggable token verifier."""

    @abstractmethod
    async def verify(self, token: str) -> VerifiedIdentity:
        """Return the verified identity or raise AuthenticationError."""
        ...


class JWTAuthenticator(Authenticator):
    """
    Verifies HS256 (or configured algorithm) identity tokens.

    Checks:
    1. Signature and expiry
    2. Presence of an email claim
    3. Token-level and identity-level revocation in Redis
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self.secret_key = secret_key
        self.algorithm = algorithm

    async def verify(self, token: str) -> VerifiedIdentity:
        payload = decode_identity_token(token, self.secret_key, self.algorithm)
        if payload is None:
            raise AuthenticationError("Could not validate credentials")

        email = payload.get("email")
        if not email:
            raise AuthenticationError("Token has no email claim")

        if await is_token_revoked(token):
            raise TokenRevokedError()

        email = email.lower()
        if await is_identity_revoked(email):
            raise AuthenticationError("Access for this identity has been revoked")

        return VerifiedIdentity(email=email, uid=payload.get("sub"), claims=payload)

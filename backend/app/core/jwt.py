"""
JWT token utilities for identity tokens.

Tokens are issued by the identity provider; `create_identity_token` exists
for local development and tests, which stand in for the provider.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from backend.app.core.config import settings


def create_identity_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed identity token.

    Args:
        data: Claims to encode (should include: sub, email)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example payload:
        {
            "sub": "uid-123",
            "email": "rider@example.com",
            "exp": 1234567890
        }
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.identity_token_expire_minutes)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.identity_secret_key, algorithm=settings.identity_algorithm)


def decode_identity_token(token: str, secret_key: str, algorithm: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate an identity token.

    Returns:
        Decoded claims if signature and expiry are valid, None otherwise
    """
    try:
        return jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError:
        return None

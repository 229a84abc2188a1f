"""
Token Revocation using Redis.

Lets an admin cut off a token (or every token of an identity) before it
expires. Lookups go through the module attribute so tests can swap the
client.
"""

import logging
from redis.exceptions import RedisError
import backend.app.core.redis_client as redis_client_module
from backend.app.core.config import settings

logger = logging.getLogger("parcel_delivery.auth")

# Redis key prefixes
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
IDENTITY_REVOKED_PREFIX = "identity:revoked:"


def _ttl_seconds() -> int:
    # Tokens expire on their own after this long
    return settings.identity_token_expire_minutes * 60


async def revoke_token(token: str, email: str) -> bool:
    """
    Revoke a specific token by adding it to the blacklist.

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        await redis_client_module.redis_client.set(key, email, ex=_ttl_seconds())
        return True
    except RedisError as e:
        logger.error("Error revoking token for %s: %s", email, e)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    Fails open when Redis is unreachable (availability over strictness).
    """
    try:
        exists = await redis_client_module.redis_client.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}")
        return exists > 0
    except RedisError as e:
        logger.error("Error checking token revocation: %s", e)
        return False


async def revoke_identity(email: str) -> bool:
    """Revoke every token issued to an identity."""
    try:
        await redis_client_module.redis_client.set(f"{IDENTITY_REVOKED_PREFIX}{email}", "1", ex=_ttl_seconds())
        return True
    except RedisError as e:
        logger.error("Error revoking tokens for %s: %s", email, e)
        return False


async def is_identity_revoked(email: str) -> bool:
    try:
        exists = await redis_client_module.redis_client.exists(f"{IDENTITY_REVOKED_PREFIX}{email}")
        return exists > 0
    except RedisError as e:
        logger.error("Error checking identity revocation for %s: %s", email, e)
        return False


async def clear_identity_revocation(email: str) -> bool:
    try:
        await redis_client_module.redis_client.delete(f"{IDENTITY_REVOKED_PREFIX}{email}")
        return True
    except RedisError as e:
        logger.error("Error clearing revocation for %s: %s", email, e)
        return False

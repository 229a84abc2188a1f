"""
Redis connection for session revocation.

Holds the blacklisted tokens and revoked identities read by
token_revocation. The client connects lazily on its first command.
"""

import logging

import redis.asyncio as redis

from backend.app.core.config import Settings, settings

logger = logging.getLogger("parcel_delivery.redis")


def build_redis(config: Settings) -> redis.Redis:
    return redis.from_url(
        config.redis_url,
        decode_responses=config.redis_decode_responses,
    )


redis_client = build_redis(settings)


async def ping_redis() -> bool:
    """True when the revocation store answers; logs the failure otherwise."""
    try:
        return bool(await redis_client.ping())
    except redis.RedisError as e:
        logger.warning("Redis ping failed: %s", e)
        return False


async def close_redis() -> None:
    await redis_client.aclose()

"""
Centralized Redis client manager with connection pooling.

The receipt counter is the only Redis consumer; it shares one pool per
process.
"""
import logging

import redis
from redis.connection import ConnectionPool

from vatledger.core.config import settings
from vatledger.core.exceptions import ConfigurationError
from vatledger.core.redis_utils import prepare_redis_url

logger = logging.getLogger(__name__)

_pool: ConnectionPool | None = None
_client: redis.Redis | None = None


def get_redis_pool() -> ConnectionPool:
    """Get or create a shared Redis connection pool."""
    global _pool
    if _pool is not None:
        return _pool

    redis_url = prepare_redis_url(settings.REDIS_URL)
    if not redis_url:
        raise ConfigurationError("REDIS_URL")

    # retry_on_timeout stays off: a timed-out INCR may already have been
    # applied server-side, and replaying it would skip a receipt number.
    pool_kwargs = {
        "max_connections": 10,
        "socket_timeout": 5,
        "socket_connect_timeout": 5,
        "retry_on_timeout": False,
        "health_check_interval": 30,
        "decode_responses": True,
    }

    _pool = ConnectionPool.from_url(redis_url, **pool_kwargs)
    logger.info("Redis connection pool created (max_connections=%s)", pool_kwargs["max_connections"])
    return _pool


def get_redis_client() -> redis.Redis:
    """Get or create a Redis client using the shared connection pool."""
    global _client
    if _client is not None:
        return _client

    pool = get_redis_pool()
    _client = redis.Redis(connection_pool=pool)

    try:
        _client.ping()
        logger.info("Redis client connected successfully")
    except redis.RedisError as e:
        logger.error("Redis connection failed: %s", e)
        _client = None
        raise

    return _client


def close_redis_pool() -> None:
    """Close the Redis connection pool. Called on app shutdown."""
    global _pool, _client
    if _client is not None:
        _client.close()
        _client = None
    if _pool is not None:
        _pool.disconnect()
        _pool = None
    logger.info("Redis pool closed")

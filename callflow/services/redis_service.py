"""
Redis connection handling and key layout

Every key is namespaced by tenant so two tenants can reuse a call id.
"""

from datetime import date
from typing import Optional

import redis.asyncio as redis

from callflow.core.config import settings

# Global Redis pool
_redis_pool: Optional[redis.ConnectionPool] = None
_redis_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Get Redis client with connection pooling"""
    global _redis_pool, _redis_client

    if _redis_client is None:
        _redis_pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            max_connections=settings.redis_max_connections,
            decode_responses=True
        )
        _redis_client = redis.Redis(connection_pool=_redis_pool)

    return _redis_client


async def close_redis():
    """Close Redis connection"""
    global _redis_pool, _redis_client

    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None

    if _redis_pool:
        await _redis_pool.disconnect()
        _redis_pool = None


def tenant_config_key(tenant_id: str) -> str:
    return f"tenant:{tenant_id}:config"


def session_key(tenant_id: str, call_id: str) -> str:
    return f"tenant:{tenant_id}:call:session:{call_id}"


def call_log_key(tenant_id: str, call_id: str) -> str:
    return f"tenant:{tenant_id}:call:log:{call_id}"


def daily_analytics_key(tenant_id: str, day: date) -> str:
    return f"tenant:{tenant_id}:analytics:daily:{day.isoformat()}"

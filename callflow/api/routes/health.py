"""
Health check and status endpoints
"""

from datetime import datetime, timezone
from fastapi import APIRouter
from fastapi.responses import JSONResponse
import redis.asyncio as redis

from callflow import __version__
from callflow.core.config import settings
from callflow.core.logging import get_logger
from callflow.services.redis_service import get_redis

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment
    }


@router.get("/ready")
async def readiness_check():
    """
    Readiness check - verifies Redis answers and providers are configured
    """
    try:
        client = await get_redis()
        redis_ok = bool(await client.ping())
    except redis.RedisError as e:
        logger.warning(f"Redis ping failed: {e}")
        redis_ok = False

    checks = {
        "redis": redis_ok,
        "openai": bool(settings.openai_api_key),
        "human_agent": bool(settings.human_agent_number)
    }

    ready = checks["redis"] and checks["openai"]

    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": checks
        }
    )


@router.get("/info")
async def service_info():
    """
    Get service information and configuration (non-sensitive)
    """
    return {
        "service": "CallFlow",
        "version": __version__,
        "environment": settings.environment,
        "api_base_url": settings.api_base_url,
        "openai_model": settings.openai_model,
        "tts_model": settings.openai_tts_model,
        "max_call_turns": settings.max_call_turns,
        "max_call_duration_sec": settings.max_call_duration_sec,
        "session_ttl_seconds": settings.session_ttl_seconds
    }

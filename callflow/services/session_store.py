"""
Call Session Store
Redis-backed persistence for live call sessions, call logs and daily counters

Sessions are written whole with SET ... EX, so a retried webhook simply
overwrites the previous value. Concurrent writes for the same call are not
serialized; the last write wins.
"""

from datetime import date, datetime
from typing import Optional

import redis.asyncio as redis
from pydantic import ValidationError

from callflow.core.exceptions import SessionCorruptedError, SessionStoreError
from callflow.core.logging import get_logger
from callflow.models.session import CallSession, CallLog
from callflow.models.tenant import TenantConfig
from callflow.services.redis_service import (
    session_key,
    call_log_key,
    daily_analytics_key
)

logger = get_logger(__name__)

DEFAULT_SESSION_TTL = 3600


class CallSessionStore:
    """Tenant-scoped storage for call sessions"""

    def __init__(self, client: redis.Redis, ttl_seconds: int = DEFAULT_SESSION_TTL):
        self.client = client
        self.ttl_seconds = ttl_seconds

    async def create(
        self,
        tenant_id: str,
        call_id: str,
        caller_address: Optional[str],
        tenant_config: TenantConfig,
        started_at: Optional[datetime] = None
    ) -> CallSession:
        """
        Create and persist a new session for an inbound call

        A repeated create for the same key replaces the earlier session.

        Args:
            tenant_id: Tenant identifier
            call_id: Provider call identifier
            caller_address: Number of the calling party
            tenant_config: Configuration used to seed the system turn
            started_at: Start time, defaults to now

        Returns:
            The stored CallSession
        """
        session = CallSession.start(
            tenant_id=tenant_id,
            call_id=call_id,
            caller_address=caller_address,
            system_prompt=tenant_config.get_system_prompt(),
            started_at=started_at
        )
        await self.save(session)
        logger.info(f"Created session for call {call_id} (tenant {tenant_id})")
        return session

    async def get(self, tenant_id: str, call_id: str) -> Optional[CallSession]:
        """
        Load a session

        Returns:
            The session, or None when it is unknown, expired or finalized
        """
        key = session_key(tenant_id, call_id)
        try:
            data = await self.client.get(key)
        except redis.RedisError as e:
            raise SessionStoreError("get", key, str(e)) from e

        if data is None:
            return None

        try:
            return CallSession.model_validate_json(data)
        except ValidationError as e:
            raise SessionCorruptedError(key, str(e)) from e

    async def save(self, session: CallSession) -> None:
        """Overwrite a session and refresh its time-to-live"""
        key = session_key(session.tenant_id, session.call_id)
        try:
            await self.client.set(key, session.model_dump_json(), ex=self.ttl_seconds)
        except redis.RedisError as e:
            raise SessionStoreError("set", key, str(e)) from e

    async def delete(self, tenant_id: str, call_id: str) -> None:
        key = session_key(tenant_id, call_id)
        try:
            await self.client.delete(key)
        except redis.RedisError as e:
            raise SessionStoreError("delete", key, str(e)) from e

    async def write_log(self, call_log: CallLog) -> None:
        """Archive a finished call; logs never expire"""
        key = call_log_key(call_log.tenant_id, call_log.call_id)
        try:
            await self.client.set(key, call_log.model_dump_json())
        except redis.RedisError as e:
            raise SessionStoreError("set", key, str(e)) from e

    async def get_log(self, tenant_id: str, call_id: str) -> Optional[CallLog]:
        key = call_log_key(tenant_id, call_id)
        try:
            data = await self.client.get(key)
        except redis.RedisError as e:
            raise SessionStoreError("get", key, str(e)) from e

        if data is None:
            return None

        try:
            return CallLog.model_validate_json(data)
        except ValidationError as e:
            raise SessionCorruptedError(key, str(e)) from e

    async def increment_counter(self, tenant_id: str, day: date, field: str, amount: int = 1) -> int:
        """Atomically bump one daily analytics counter"""
        key = daily_analytics_key(tenant_id, day)
        try:
            return await self.client.hincrby(key, field, amount)
        except redis.RedisError as e:
            raise SessionStoreError("hincrby", key, str(e)) from e


# Singleton instance
_session_store: Optional[CallSessionStore] = None


def initialize_session_store(client: redis.Redis, ttl_seconds: int = DEFAULT_SESSION_TTL) -> CallSessionStore:
    """Create the CallSessionStore singleton around a shared Redis client"""
    global _session_store
    _session_store = CallSessionStore(client, ttl_seconds=ttl_seconds)
    return _session_store


def get_session_store() -> CallSessionStore:
    """Get the CallSessionStore singleton instance"""
    if _session_store is None:
        raise RuntimeError("CallSessionStore is not initialized")
    return _session_store

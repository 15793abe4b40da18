"""
Tenant Service
Resolves the configuration of the business a call was placed to
"""

from typing import Optional

import redis.asyncio as redis
from pydantic import ValidationError

from callflow.core.config import settings
from callflow.core.exceptions import SessionStoreError
from callflow.core.logging import get_logger
from callflow.models.tenant import TenantConfig
from callflow.services.redis_service import tenant_config_key

logger = get_logger(__name__)


class TenantService:
    """Reads and writes tenant configurations in Redis"""

    def __init__(self, client: redis.Redis, default_human_agent: Optional[str] = None):
        self.client = client
        self.default_human_agent = default_human_agent

    def default_config(self) -> TenantConfig:
        """Configuration used for tenants that have none stored"""
        return TenantConfig(human_agent=self.default_human_agent)

    async def resolve(self, tenant_id: str) -> TenantConfig:
        """
        Get the configuration for a tenant

        Unknown tenants, and tenants whose stored record does not validate,
        get the default configuration. Only a store outage raises.

        Args:
            tenant_id: Tenant identifier (the dialed number)

        Returns:
            TenantConfig for the tenant
        """
        key = tenant_config_key(tenant_id)
        try:
            data = await self.client.get(key)
        except redis.RedisError as e:
            raise SessionStoreError("get", key, str(e)) from e

        if not data:
            return self.default_config()

        try:
            config = TenantConfig.model_validate_json(data)
        except ValidationError as e:
            logger.error(f"Invalid configuration stored for tenant {tenant_id}, using defaults: {e}")
            return self.default_config()

        if config.human_agent is None and self.default_human_agent:
            config = config.model_copy(update={"human_agent": self.default_human_agent})
        return config

    async def save(self, tenant_id: str, config: TenantConfig) -> TenantConfig:
        """Store the configuration for a tenant, replacing any previous one"""
        key = tenant_config_key(tenant_id)
        try:
            await self.client.set(key, config.model_dump_json(by_alias=True))
        except redis.RedisError as e:
            raise SessionStoreError("set", key, str(e)) from e

        logger.info(f"Saved configuration for tenant {tenant_id}")
        return config


# Singleton instance
_tenant_service: Optional[TenantService] = None


def initialize_tenant_service(client: redis.Redis) -> TenantService:
    """Create the TenantService singleton around a shared Redis client"""
    global _tenant_service
    _tenant_service = TenantService(client, default_human_agent=settings.human_agent_number)
    return _tenant_service


def get_tenant_service() -> TenantService:
    """Get the TenantService singleton instance"""
    if _tenant_service is None:
        raise RuntimeError("TenantService is not initialized")
    return _tenant_service

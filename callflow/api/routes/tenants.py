"""
Tenant Management API Routes
Read and replace tenant configurations, look up archived calls
"""

from fastapi import APIRouter, Depends, HTTPException

from callflow.api.middleware.auth import require_admin
from callflow.core.logging import get_logger
from callflow.models.session import CallLog
from callflow.models.tenant import TenantConfig
from callflow.services.session_store import CallSessionStore, get_session_store
from callflow.services.tenant_service import TenantService, get_tenant_service

logger = get_logger(__name__)

router = APIRouter(
    prefix="/tenants",
    tags=["tenants"],
    dependencies=[Depends(require_admin)]
)


@router.get("/{tenant_id}/config", response_model=TenantConfig)
async def get_tenant_config(
    tenant_id: str,
    service: TenantService = Depends(get_tenant_service)
):
    """
    Get the effective configuration of a tenant

    Tenants without a stored configuration get the defaults.
    """
    return await service.resolve(tenant_id)


@router.put("/{tenant_id}/config", response_model=TenantConfig)
async def put_tenant_config(
    tenant_id: str,
    config: TenantConfig,
    service: TenantService = Depends(get_tenant_service)
):
    """
    Replace the configuration of a tenant
    """
    return await service.save(tenant_id, config)


@router.get("/{tenant_id}/calls/{call_id}", response_model=CallLog)
async def get_call_log(
    tenant_id: str,
    call_id: str,
    store: CallSessionStore = Depends(get_session_store)
):
    """
    Get the archived log of a finished call
    """
    call_log = await store.get_log(tenant_id, call_id)
    if call_log is None:
        raise HTTPException(status_code=404, detail=f"Call log not found: {call_id}")
    return call_log

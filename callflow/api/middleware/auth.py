"""
Authentication for admin routes
"""

import hmac
from typing import Optional
from fastapi import Request

from callflow.core.config import settings
from callflow.core.exceptions import AdminAPIDisabledError, InvalidAPIKeyError


async def get_api_key(request: Request) -> Optional[str]:
    """Extract API key from request"""
    api_key = request.headers.get("X-API-Key")
    if api_key:
        return api_key

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]

    return None


async def require_admin(request: Request) -> None:
    """
    Dependency guarding tenant administration routes

    Usage:
        @router.put("/endpoint", dependencies=[Depends(require_admin)])
    """
    if not settings.admin_api_key:
        raise AdminAPIDisabledError()

    api_key = await get_api_key(request)
    if not api_key:
        raise InvalidAPIKeyError("API key is required")

    if not hmac.compare_digest(api_key, settings.admin_api_key):
        raise InvalidAPIKeyError()

# madrasah_admin/core/dependencies.py
"""FastAPI dependencies: bearer authentication and the session context."""
import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db
from .exceptions import AuthenticationError, ValidationException
from .permissions import Capability
from .security import decode_user_id, is_service_role_token
from ..services.access_control import AccessControlService, SessionContext

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

def bearer_token(request: Request) -> Optional[str]:
    """Raw bearer token of a request, if any."""
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()

async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> UUID:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return decode_user_id(credentials.credentials)

def _parse_tenant_header(value: Optional[str]) -> Optional[UUID]:
    if not value:
        return None
    try:
        return UUID(value.strip())
    except ValueError:
        raise ValidationException("X-Madrasah-Id must be a valid UUID")

async def get_session_context(
    user_id: UUID = Depends(get_current_user_id),
    x_madrasah_id: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> SessionContext:
    """Resolve (user, madrasah, role); the context may be unprovisioned."""
    requested = _parse_tenant_header(x_madrasah_id)
    return await AccessControlService(db).resolve_context(user_id, requested)

def require_capability(capability: Capability):
    """Dependency factory: a provisioned context whose role grants ``capability``."""
    async def dependency(context: SessionContext = Depends(get_session_context)) -> SessionContext:
        context.require(capability)
        return context
    return dependency

async def resolve_function_invoker(request: Request, db: AsyncSession, madrasah_id: UUID) -> Optional[SessionContext]:
    """
    Caller of a backup/restore function.

    Returns None for the trusted service role. A user must hold
    can_manage_backups in ``madrasah_id``; anything else raises.
    """
    token = bearer_token(request)
    if token is None:
        raise AuthenticationError()
    if is_service_role_token(token):
        logger.info(f"Function {request.url.path} invoked with the service role")
        return None

    user_id = decode_user_id(token)
    context = await AccessControlService(db).resolve_context(user_id, madrasah_id)
    context.require(Capability.MANAGE_BACKUPS)
    return context

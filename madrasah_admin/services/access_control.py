# madrasah_admin/services/access_control.py
"""Resolve the session's madrasah and role, and evaluate capabilities."""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import PermissionDenied, StoreError, TenantNotProvisioned
from ..core.permissions import Capability, UserRole, capability_map, has_permission, role_can
from ..models import Profile, UserRoleAssignment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Explicit (user, madrasah, role) passed to every tenant-scoped operation."""
    user_id: UUID
    madrasah_id: Optional[UUID] = None
    role: Optional[UserRole] = None

    @property
    def provisioned(self) -> bool:
        return self.madrasah_id is not None

    def has_permission(self, allowed_roles: Iterable[Union[UserRole, str]]) -> bool:
        return has_permission(self.role, allowed_roles)

    def can(self, capability: Capability) -> bool:
        return role_can(self.role, capability)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER

    @property
    def is_parent(self) -> bool:
        return self.role == UserRole.PARENT

    def capabilities(self) -> Dict[str, bool]:
        return capability_map(self.role)

    def require_tenant(self) -> UUID:
        if self.madrasah_id is None:
            raise TenantNotProvisioned()
        return self.madrasah_id

    def require(self, capability: Capability) -> UUID:
        """Tenant id of the context, if the role grants ``capability``."""
        madrasah_id = self.require_tenant()
        if not self.can(capability):
            logger.warning(
                f"Permission denied: user {self.user_id} with role {self.role} "
                f"attempted an action requiring {capability.value}"
            )
            raise PermissionDenied()
        return madrasah_id


class AccessControlService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve_madrasah_id(self, user_id: UUID, requested: Optional[UUID] = None) -> Optional[UUID]:
        """
        Madrasah bound to the session. ``requested`` selects one of the user's
        memberships; otherwise the most recently updated profile is used.
        None means the user is unprovisioned.
        """
        stmt = select(Profile.madrasah_id).where(Profile.user_id == user_id)
        if requested is not None:
            stmt = stmt.where(Profile.madrasah_id == requested)
        stmt = stmt.order_by(Profile.updated_at.desc(), Profile.created_at.desc()).limit(1)
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error resolving madrasah for user {user_id}: {e}")
            raise StoreError("profiles", "read", e) from e

        madrasah_id = result.scalar_one_or_none()
        if madrasah_id is None and requested is not None:
            raise PermissionDenied("You are not a member of this madrasah")
        return madrasah_id

    async def resolve_role(self, user_id: UUID, madrasah_id: Optional[UUID]) -> Optional[UserRole]:
        """Role from user_roles only. Any failure yields no role."""
        if madrasah_id is None:
            return None
        stmt = select(UserRoleAssignment.role).where(
            UserRoleAssignment.user_id == user_id,
            UserRoleAssignment.madrasah_id == madrasah_id,
        )
        try:
            result = await self.db.execute(stmt)
            raw_role = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Role lookup failed for user {user_id} in madrasah {madrasah_id}: {e}")
            return None

        role = UserRole.parse(raw_role)
        if raw_role is not None and role is None:
            logger.warning(f"Ignoring unknown role {raw_role!r} for user {user_id}")
        return role

    async def resolve_context(self, user_id: UUID, requested_madrasah_id: Optional[UUID] = None) -> SessionContext:
        madrasah_id = await self.resolve_madrasah_id(user_id, requested_madrasah_id)
        role = await self.resolve_role(user_id, madrasah_id)
        return SessionContext(user_id=user_id, madrasah_id=madrasah_id, role=role)

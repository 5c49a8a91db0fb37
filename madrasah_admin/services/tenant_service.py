# madrasah_admin/services/tenant_service.py
"""Madrasah setup and membership (user_roles) management."""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError, StoreError
from ..core.permissions import UserRole
from ..models import Madrasah, Profile, UserRoleAssignment

logger = logging.getLogger(__name__)


class TenantService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_madrasah(self, madrasah_id: UUID) -> Madrasah:
        madrasah = await self.db.get(Madrasah, madrasah_id)
        if madrasah is None:
            raise NotFoundError("Madrasah not found")
        return madrasah

    async def setup_madrasah(self, user_id: UUID, data: Dict[str, Any], full_name: Optional[str]) -> Madrasah:
        """Create a madrasah for an unprovisioned user and make them its admin."""
        existing = await self.db.execute(select(Profile.id).where(Profile.user_id == user_id).limit(1))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("This account is already linked to a madrasah")

        code = data["madrasah_id"].strip().upper()
        taken = await self.db.execute(select(Madrasah.id).where(Madrasah.madrasah_id == code))
        if taken.scalar_one_or_none() is not None:
            raise ConflictError(f"Madrasah code {code} is already in use")

        madrasah = Madrasah(**data)
        try:
            self.db.add(madrasah)
            await self.db.flush()
            self.db.add(Profile(user_id=user_id, madrasah_id=madrasah.id, full_name=full_name, role=UserRole.ADMIN.value))
            self.db.add(UserRoleAssignment(user_id=user_id, madrasah_id=madrasah.id, role=UserRole.ADMIN.value))
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Madrasah setup conflict for user {user_id}: {e}")
            raise ConflictError("Madrasah could not be created; code or membership already exists")
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("madrasah", "insert", e) from e

        logger.info(f"Madrasah {madrasah.madrasah_id} ({madrasah.id}) set up by user {user_id}")
        return madrasah

    async def list_members(self, madrasah_id: UUID) -> List[Dict[str, Any]]:
        stmt = (
            select(UserRoleAssignment.user_id, UserRoleAssignment.role, Profile.full_name)
            .outerjoin(
                Profile,
                (Profile.user_id == UserRoleAssignment.user_id) & (Profile.madrasah_id == UserRoleAssignment.madrasah_id),
            )
            .where(UserRoleAssignment.madrasah_id == madrasah_id)
            .order_by(UserRoleAssignment.created_at)
        )
        result = await self.db.execute(stmt)
        return [
            {
                "user_id": str(row.user_id),
                "role": row.role,
                "full_name": row.full_name or "Unknown",
            }
            for row in result
        ]

    async def add_member(self, madrasah_id: UUID, user_id: UUID, role: UserRole) -> UserRoleAssignment:
        if await self._find_assignment(madrasah_id, user_id) is not None:
            raise ConflictError("This user already exists")

        assignment = UserRoleAssignment(user_id=user_id, madrasah_id=madrasah_id, role=role.value)
        try:
            self.db.add(assignment)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("This user already exists")
        logger.info(f"Added user {user_id} to madrasah {madrasah_id} as {role.value}")
        return assignment

    async def change_role(self, madrasah_id: UUID, user_id: UUID, role: UserRole) -> UserRoleAssignment:
        assignment = await self._find_assignment(madrasah_id, user_id)
        if assignment is None:
            raise NotFoundError("Member not found")

        assignment.role = role.value
        # Keep the display copy in step; it is never used for authorization
        profile = await self.db.execute(
            select(Profile).where(Profile.user_id == user_id, Profile.madrasah_id == madrasah_id)
        )
        profile = profile.scalar_one_or_none()
        if profile is not None:
            profile.role = role.value
        await self.db.commit()
        logger.info(f"Changed role of user {user_id} in madrasah {madrasah_id} to {role.value}")
        return assignment

    async def _find_assignment(self, madrasah_id: UUID, user_id: UUID) -> Optional[UserRoleAssignment]:
        result = await self.db.execute(
            select(UserRoleAssignment).where(
                UserRoleAssignment.madrasah_id == madrasah_id,
                UserRoleAssignment.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

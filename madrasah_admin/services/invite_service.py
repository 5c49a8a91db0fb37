# madrasah_admin/services/invite_service.py
"""Invite tokens that grant a role in a madrasah."""
import logging
import secrets
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import ConflictError, NotFoundError
from ..core.permissions import UserRole
from ..models import Invite, Madrasah, Profile, UserRoleAssignment

logger = logging.getLogger(__name__)

TOKEN_BYTES = 24


def generate_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def invite_link(token: str, base_url: Optional[str] = None) -> str:
    base = (base_url or settings.app_base_url).rstrip("/")
    return f"{base}/auth?invite={token}"


class InviteService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def serialize(self, invite: Invite, base_url: Optional[str] = None) -> Dict[str, Any]:
        return {
            "id": str(invite.id),
            "madrasah_id": str(invite.madrasah_id),
            "role": invite.role,
            "token": invite.token,
            "is_active": invite.is_active,
            "used_count": invite.used_count,
            "created_at": invite.created_at.isoformat() if invite.created_at else None,
            "link": invite_link(invite.token, base_url),
        }

    async def create_invite(self, madrasah_id: UUID, role: UserRole, created_by: UUID) -> Invite:
        invite = Invite(
            madrasah_id=madrasah_id,
            role=role.value,
            token=generate_token(),
            created_by=created_by,
            is_active=True,
            used_count=0,
        )
        self.db.add(invite)
        await self.db.commit()
        logger.info(f"Created {role.value} invite {invite.id} for madrasah {madrasah_id}")
        return invite

    async def list_invites(self, madrasah_id: UUID) -> List[Invite]:
        result = await self.db.execute(
            select(Invite).where(Invite.madrasah_id == madrasah_id).order_by(Invite.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_invite(self, madrasah_id: UUID, invite_id: UUID) -> Invite:
        result = await self.db.execute(
            select(Invite).where(Invite.id == invite_id, Invite.madrasah_id == madrasah_id)
        )
        invite = result.scalar_one_or_none()
        if invite is None:
            raise NotFoundError("Invite not found")
        return invite

    async def set_active(self, madrasah_id: UUID, invite_id: UUID, is_active: bool) -> Invite:
        invite = await self.get_invite(madrasah_id, invite_id)
        invite.is_active = is_active
        await self.db.commit()
        return invite

    async def delete_invite(self, madrasah_id: UUID, invite_id: UUID) -> None:
        invite = await self.get_invite(madrasah_id, invite_id)
        await self.db.delete(invite)
        await self.db.commit()
        logger.info(f"Deleted invite {invite_id} of madrasah {madrasah_id}")

    async def lookup_active(self, token: str) -> Dict[str, Any]:
        """Active invite by token together with its madrasah."""
        result = await self.db.execute(
            select(Invite, Madrasah)
            .join(Madrasah, Madrasah.id == Invite.madrasah_id)
            .where(Invite.token == token, Invite.is_active.is_(True))
        )
        row = result.first()
        if row is None:
            raise NotFoundError("Invalid or expired invite")
        invite, madrasah = row
        return {"invite": invite, "madrasah": madrasah}

    async def accept_invite(self, token: str, user_id: UUID, full_name: Optional[str] = None) -> Dict[str, Any]:
        found = await self.lookup_active(token)
        invite, madrasah = found["invite"], found["madrasah"]

        existing = await self.db.execute(
            select(UserRoleAssignment.id).where(
                UserRoleAssignment.user_id == user_id,
                UserRoleAssignment.madrasah_id == invite.madrasah_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("You are already a member of this madrasah")

        try:
            self.db.add(UserRoleAssignment(user_id=user_id, madrasah_id=invite.madrasah_id, role=invite.role))

            profile = await self.db.execute(
                select(Profile).where(Profile.user_id == user_id, Profile.madrasah_id == invite.madrasah_id)
            )
            profile = profile.scalar_one_or_none()
            if profile is None:
                self.db.add(Profile(
                    user_id=user_id,
                    madrasah_id=invite.madrasah_id,
                    full_name=full_name or "",
                    role=invite.role,
                ))
            else:
                profile.role = invite.role
                if full_name:
                    profile.full_name = full_name

            invite.used_count = (invite.used_count or 0) + 1
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("You are already a member of this madrasah")

        logger.info(f"User {user_id} joined madrasah {invite.madrasah_id} as {invite.role} via invite {invite.id}")
        return {"madrasah_id": str(madrasah.id), "madrasah_name": madrasah.name, "role": invite.role}

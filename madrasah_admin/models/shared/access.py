# madrasah_admin/models/shared/access.py
"""Profiles, role assignments and invites."""
from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Uuid, UniqueConstraint, CheckConstraint, Index
from ..base import Base

ROLE_CHECK = "role IN ('admin', 'teacher', 'manager', 'parent', 'user')"

class Profile(Base):
    __tablename__ = "profiles"

    user_id = Column(Uuid, nullable=False, index=True)
    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)
    full_name = Column(String(200))
    # Denormalized copy for display only; authorization reads user_roles
    role = Column(String(20), nullable=False, default="user")

    __table_args__ = (
        UniqueConstraint('user_id', 'madrasah_id', name='uq_profile_user_madrasah'),
    )

class UserRoleAssignment(Base):
    __tablename__ = "user_roles"

    user_id = Column(Uuid, nullable=False)
    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'madrasah_id', name='uq_user_role_madrasah'),
        CheckConstraint(ROLE_CHECK, name='ck_user_roles_role'),
        Index('idx_user_roles_user', 'user_id'),
    )

class Invite(Base):
    __tablename__ = "invites"

    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(128), nullable=False, unique=True, index=True)
    role = Column(String(20), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    used_count = Column(Integer, nullable=False, default=0)
    created_by = Column(Uuid)

    __table_args__ = (
        CheckConstraint(ROLE_CHECK, name='ck_invites_role'),
    )

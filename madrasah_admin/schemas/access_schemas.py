# madrasah_admin/schemas/access_schemas.py
"""Pydantic schemas for madrasah setup, members and invites."""
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field, field_validator

from ..core.permissions import UserRole

class MadrasahSetup(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Madrasah name")
    madrasah_id: str = Field(..., min_length=1, max_length=50, description="Short madrasah code")
    full_name: Optional[str] = Field(default=None, max_length=200, description="Admin display name")
    address: Optional[str] = Field(default=None, max_length=500)
    contact: Optional[str] = Field(default=None, max_length=50)
    email: Optional[EmailStr] = Field(default=None)
    logo_url: Optional[str] = Field(default=None, max_length=500)
    base_url: Optional[str] = Field(default=None, max_length=500, description="Public URL used in invite links")

    @field_validator('madrasah_id')
    @classmethod
    def normalize_code(cls, v):
        if not v.strip():
            raise ValueError('Madrasah code cannot be empty')
        return v.strip().upper()

    def madrasah_fields(self) -> dict:
        return self.model_dump(exclude={"full_name"})

class MemberCreate(BaseModel):
    user_id: UUID
    role: UserRole

class RoleChange(BaseModel):
    role: UserRole

class InviteCreate(BaseModel):
    role: UserRole = Field(..., description="Role granted to whoever accepts the invite")

class InviteToggle(BaseModel):
    is_active: bool

class InviteAccept(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)
    full_name: Optional[str] = Field(default=None, max_length=200)

# madrasah_admin/routers/access.py
"""Session info, madrasah setup, members and invites."""
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_user_id, get_session_context, require_capability
from ..core.permissions import Capability
from ..schemas.access_schemas import InviteAccept, InviteCreate, InviteToggle, MadrasahSetup, MemberCreate, RoleChange
from ..services.access_control import SessionContext
from ..services.invite_service import InviteService
from ..services.tenant_service import TenantService

router = APIRouter(prefix="/api/v1", tags=["Access Control"])

manage_users = require_capability(Capability.MANAGE_USERS)

@router.get("/me", response_model=dict)
async def get_me(context: SessionContext = Depends(get_session_context)):
    """Resolved tenant, role and capability map of the caller"""
    return {
        "user_id": str(context.user_id),
        "madrasah_id": str(context.madrasah_id) if context.madrasah_id else None,
        "role": context.role.value if context.role else None,
        "provisioned": context.provisioned,
        "is_admin": context.is_admin,
        "is_teacher": context.is_teacher,
        "is_manager": context.is_manager,
        "is_parent": context.is_parent,
        "capabilities": context.capabilities(),
    }

@router.post("/setup", response_model=dict, status_code=201)
async def setup_madrasah(
    body: MadrasahSetup,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Create a madrasah for an account that has none"""
    madrasah = await TenantService(db).setup_madrasah(user_id, body.madrasah_fields(), body.full_name)
    return {
        "id": str(madrasah.id),
        "name": madrasah.name,
        "madrasah_id": madrasah.madrasah_id,
        "role": "admin",
        "message": "Madrasah created successfully",
    }

# Members

@router.get("/members", response_model=dict)
async def list_members(context: SessionContext = Depends(manage_users), db: AsyncSession = Depends(get_db)):
    members = await TenantService(db).list_members(context.madrasah_id)
    return {"items": members, "total": len(members)}

@router.post("/members", response_model=dict, status_code=201)
async def add_member(
    body: MemberCreate,
    context: SessionContext = Depends(manage_users),
    db: AsyncSession = Depends(get_db)
):
    assignment = await TenantService(db).add_member(context.madrasah_id, body.user_id, body.role)
    return {"user_id": str(assignment.user_id), "role": assignment.role, "message": "Member added successfully"}

@router.put("/members/{user_id}", response_model=dict)
async def change_member_role(
    user_id: UUID,
    body: RoleChange,
    context: SessionContext = Depends(manage_users),
    db: AsyncSession = Depends(get_db)
):
    assignment = await TenantService(db).change_role(context.madrasah_id, user_id, body.role)
    return {"user_id": str(assignment.user_id), "role": assignment.role, "message": "Role updated successfully"}

# Invites

async def _invite_base_url(db: AsyncSession, madrasah_id: UUID):
    madrasah = await TenantService(db).get_madrasah(madrasah_id)
    return madrasah.base_url

@router.post("/invites", response_model=dict, status_code=201)
async def create_invite(
    body: InviteCreate,
    context: SessionContext = Depends(manage_users),
    db: AsyncSession = Depends(get_db)
):
    service = InviteService(db)
    invite = await service.create_invite(context.madrasah_id, body.role, context.user_id)
    return service.serialize(invite, await _invite_base_url(db, context.madrasah_id))

@router.get("/invites", response_model=dict)
async def list_invites(context: SessionContext = Depends(manage_users), db: AsyncSession = Depends(get_db)):
    service = InviteService(db)
    base_url = await _invite_base_url(db, context.madrasah_id)
    invites = await service.list_invites(context.madrasah_id)
    return {"items": [service.serialize(invite, base_url) for invite in invites], "total": len(invites)}

@router.patch("/invites/{invite_id}", response_model=dict)
async def toggle_invite(
    invite_id: UUID,
    body: InviteToggle,
    context: SessionContext = Depends(manage_users),
    db: AsyncSession = Depends(get_db)
):
    service = InviteService(db)
    invite = await service.set_active(context.madrasah_id, invite_id, body.is_active)
    return service.serialize(invite, await _invite_base_url(db, context.madrasah_id))

@router.delete("/invites/{invite_id}", response_model=dict)
async def delete_invite(
    invite_id: UUID,
    context: SessionContext = Depends(manage_users),
    db: AsyncSession = Depends(get_db)
):
    await InviteService(db).delete_invite(context.madrasah_id, invite_id)
    return {"message": "Invite deleted successfully", "id": str(invite_id)}

@router.get("/invites/lookup/{token}", response_model=dict)
async def lookup_invite(token: str, db: AsyncSession = Depends(get_db)):
    """Public: the madrasah and role an invite grants"""
    found = await InviteService(db).lookup_active(token)
    invite, madrasah = found["invite"], found["madrasah"]
    return {"madrasah_id": str(madrasah.id), "madrasah_name": madrasah.name, "role": invite.role}

@router.post("/invites/accept", response_model=dict)
async def accept_invite(
    body: InviteAccept,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    result = await InviteService(db).accept_invite(body.token, user_id, body.full_name)
    result["message"] = "Invite accepted successfully"
    return result

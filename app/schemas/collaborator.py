# app/schemas/collaborator.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.permissions import PermissionSet, Role, Status


class CollaboratorInvite(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(default=None, max_length=255)
    role: Role = Role.FRIEND


class CollaboratorRoleUpdate(BaseModel):
    role: Role


class JoinWedding(BaseModel):
    wedding_id: int = Field(ge=1)
    role: Role = Role.FRIEND


class CollaboratorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    wedding_id: int
    user_id: Optional[int] = None
    email: str
    name: str
    role: Role
    status: Status
    permissions: PermissionSet
    invited_by: Optional[int] = None
    invited_at: datetime
    accepted_at: Optional[datetime] = None


class MyRoleOut(BaseModel):
    role: Role
    permissions: PermissionSet
    status: Status
    is_owner: bool = False

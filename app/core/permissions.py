# app/core/permissions.py
from __future__ import annotations

from enum import Enum
from typing import Dict

from pydantic import BaseModel, ConfigDict

from app.core.errors import ValidationError


class Role(str, Enum):
    OWNER = "Owner"
    BRIDE = "Bride"
    GROOM = "Groom"
    PLANNER = "Planner"
    MAID_OF_HONOR = "Maid of Honor"
    BEST_MAN = "Best Man"
    PARENT = "Parent"
    SIBLING = "Sibling"
    FRIEND = "Friend"
    OTHER = "Other"


class Status(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class PermissionSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    can_view: bool = True
    can_edit_timeline: bool = False
    can_edit_guests: bool = False
    can_edit_shop: bool = False
    can_invite_others: bool = False
    can_manage_roles: bool = False


VIEW_ONLY = PermissionSet()

FULL_PERMISSIONS = PermissionSet(
    can_edit_timeline=True,
    can_edit_guests=True,
    can_edit_shop=True,
    can_invite_others=True,
    can_manage_roles=True,
)

_COUPLE = PermissionSet(
    can_edit_timeline=True,
    can_edit_guests=True,
    can_edit_shop=True,
    can_invite_others=True,
)

# Fixed grants per role; anything not listed here is view-only.
ROLE_PERMISSIONS: Dict[Role, PermissionSet] = {
    Role.OWNER: FULL_PERMISSIONS,
    Role.BRIDE: _COUPLE,
    Role.GROOM: _COUPLE,
    Role.PLANNER: _COUPLE,
    Role.MAID_OF_HONOR: PermissionSet(can_edit_timeline=True),
    Role.BEST_MAN: PermissionSet(can_edit_timeline=True),
    Role.PARENT: PermissionSet(can_edit_guests=True),
    Role.SIBLING: VIEW_ONLY,
    Role.FRIEND: VIEW_ONLY,
    Role.OTHER: VIEW_ONLY,
}


def parse_role(value) -> Role:
    """Accepts a Role or its display name ("Maid of Honor"); raises ValidationError otherwise."""
    if isinstance(value, Role):
        return value
    try:
        return Role((value or "").strip())
    except (ValueError, AttributeError):
        raise ValidationError(f"Unknown role: {value!r}")


def permissions_for(role) -> PermissionSet:
    return ROLE_PERMISSIONS.get(parse_role(role), VIEW_ONLY)

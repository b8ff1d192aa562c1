# app/services/access.py
from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, NotFoundError
from app.core.permissions import FULL_PERMISSIONS, PermissionSet, Role, Status
from app.crud.collaborator import get_accepted_by_user, get_by_wedding_and_user
from app.crud.wedding import get_wedding
from app.models.collaborator import Collaborator

log = logging.getLogger("app.access")


class AccessContext(BaseModel):
    wedding_id: int
    user_id: int
    role: Role
    permissions: PermissionSet
    status: Status
    is_owner: bool = False
    collaborator_id: Optional[int] = None


def _from_collaborator(c: Collaborator, *, user_id: int, is_owner: bool) -> AccessContext:
    return AccessContext(
        wedding_id=c.wedding_id,
        user_id=user_id,
        role=Role(c.role),
        permissions=c.permissions,
        status=Status(c.status),
        is_owner=is_owner,
        collaborator_id=c.id,
    )


def resolve_access(db: Session, user_id: int, wedding_id: int) -> AccessContext:
    """
    Effective role/permissions of `user_id` on `wedding_id`. First match wins:
      1) explicit collaboration on this wedding (returned verbatim),
      2) wedding ownership (synthesised Owner, nothing persisted),
      3) the user's single accepted collaboration: same wedding → it,
         another wedding → ForbiddenError,
      4) NotFoundError.
    """
    wedding = get_wedding(db, wedding_id)
    is_owner = wedding is not None and wedding.owner_id == user_id

    own = get_by_wedding_and_user(db, wedding_id, user_id)
    if own is not None:
        return _from_collaborator(own, user_id=user_id, is_owner=is_owner)

    if is_owner:
        return AccessContext(
            wedding_id=wedding_id,
            user_id=user_id,
            role=Role.OWNER,
            permissions=FULL_PERMISSIONS,
            status=Status.ACCEPTED,
            is_owner=True,
        )

    active = get_accepted_by_user(db, user_id)
    if active is not None:
        if active.wedding_id == wedding_id:
            return _from_collaborator(active, user_id=user_id, is_owner=False)
        log.warning(
            "access denied user_id=%s wedding_id=%s (member of wedding_id=%s)",
            user_id,
            wedding_id,
            active.wedding_id,
        )
        raise ForbiddenError("You are not a collaborator on this wedding")

    raise NotFoundError("No collaboration found for this wedding")

# app/core/rbac.py
from __future__ import annotations

from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError
from app.services.access import AccessContext, resolve_access

# -----------------------------
# Basic checks
# -----------------------------


def _has(access: AccessContext, flag: str) -> bool:
    """Owner always passes; otherwise the resolved permission set must carry `flag`."""
    if access.is_owner:
        return True
    return bool(getattr(access.permissions, flag))


# -----------------------------
# Wedding-level guards
# -----------------------------


def ensure_can_view(db: Session, user_id: int, wedding_id: int) -> AccessContext:
    access = resolve_access(db, user_id, wedding_id)
    if not _has(access, "can_view"):
        raise ForbiddenError("Permission denied (view)")
    return access


def ensure_can_invite(db: Session, user_id: int, wedding_id: int) -> AccessContext:
    access = resolve_access(db, user_id, wedding_id)
    if not _has(access, "can_invite_others"):
        raise ForbiddenError("Permission denied (invite)")
    return access


def ensure_can_manage_roles(db: Session, user_id: int, wedding_id: int) -> AccessContext:
    access = resolve_access(db, user_id, wedding_id)
    if not _has(access, "can_manage_roles"):
        raise ForbiddenError("Permission denied (manage roles)")
    return access

# app/services/invitations.py
"""
Collaboration lifecycle for a wedding.

Record states: pending → accepted | declined. Nothing re-enters pending;
accepted/declined rows only leave by removal. Every write goes through the
collaborator store, whose unique indexes decide invite/join races.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.orm import Session

from app.core.errors import (
    AlreadyCollaboratorError,
    DuplicateCollaborationError,
    InvitationPendingError,
    NotFoundError,
    ValidationError,
)
from app.core.permissions import Role, Status, parse_role
from app.core.rbac import ensure_can_invite, ensure_can_manage_roles, ensure_can_view
from app.crud.collaborator import (
    delete_collaborator,
    get_by_wedding_and_email,
    get_by_wedding_and_user,
    get_collaborator,
    insert_collaborator,
    list_for_wedding,
    update_collaborator,
)
from app.crud.user import get_user, get_user_by_email, normalize_email
from app.crud.wedding import get_wedding
from app.db.base import utcnow
from app.models.collaborator import Collaborator
from app.models.user import User
from app.models.wedding import Wedding
from app.services.audit import audit_log
from app.services.notifications import dispatch_invitation

log = logging.getLogger("app.invitations")

Dispatcher = Callable[..., Any]


# ---------------------------------
# Helpers
# ---------------------------------
def _clean_email(email: str) -> str:
    value = normalize_email(email)
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {email!r}") from e
    return value


def _require_wedding(db: Session, wedding_id: int) -> Wedding:
    wedding = get_wedding(db, wedding_id)
    if wedding is None:
        raise NotFoundError("Wedding not found")
    return wedding


def _require_user(db: Session, user_id: int) -> User:
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _notify(dispatch: Dispatcher, **kwargs: Any) -> None:
    # Runs after the record is committed; a failure here never reaches the caller.
    try:
        dispatch(**kwargs)
    except Exception:
        log.exception("invite notification dispatch failed to=%s", kwargs.get("email"))


def _bind_pending_invite(
    db: Session, invite: Collaborator, user: User, status: Status
) -> Optional[Collaborator]:
    """Attaches an email-only invite to `user` and moves it out of pending in one CAS."""
    patch = {"user_id": user.id, "status": status}
    if status == Status.ACCEPTED:
        patch["accepted_at"] = utcnow()
    try:
        return update_collaborator(
            db,
            invite.id,
            patch,
            expected_status=Status.PENDING,
            expect_unbound=True,
        )
    except DuplicateCollaborationError as e:
        raise AlreadyCollaboratorError("You are already a collaborator on this wedding") from e


def _unbound_invite_for(db: Session, wedding_id: int, user: User) -> Optional[Collaborator]:
    invite = get_by_wedding_and_email(db, wedding_id, user.email)
    if invite is not None and not invite.is_bound and invite.status == Status.PENDING.value:
        return invite
    return None


# ---------------------------------
# Invite
# ---------------------------------
def invite(
    db: Session,
    *,
    inviter_id: int,
    wedding_id: int,
    email: str,
    name: Optional[str],
    role: Any,
    dispatch: Dispatcher = dispatch_invitation,
    ip: Optional[str] = None,
) -> Collaborator:
    """
    Invites `email` to the wedding.
      - existing account → bound and auto-accepted,
      - unknown email    → unbound, pending until the person joins.
    The notification is sent after the commit and is best-effort.
    """
    role = parse_role(role)
    email = _clean_email(email)

    ensure_can_invite(db, inviter_id, wedding_id)
    wedding = _require_wedding(db, wedding_id)

    if get_by_wedding_and_email(db, wedding_id, email) is not None:
        raise AlreadyCollaboratorError(f"{email} is already a collaborator")

    target = get_user_by_email(db, email)
    if target is not None:
        if target.id == wedding.owner_id:
            raise AlreadyCollaboratorError(f"{email} owns this wedding")
        if get_by_wedding_and_user(db, wedding_id, target.id) is not None:
            raise AlreadyCollaboratorError(f"{email} is already a collaborator")

    display_name = (name or "").strip() or (target.name if target else email.split("@")[0])

    try:
        collaborator = insert_collaborator(
            db,
            wedding_id=wedding_id,
            email=email,
            name=display_name,
            role=role,
            invited_by=inviter_id,
            user_id=target.id if target else None,
            status=Status.ACCEPTED if target else Status.PENDING,
            accepted_at=utcnow() if target else None,
        )
    except DuplicateCollaborationError as e:
        raise AlreadyCollaboratorError(f"{email} is already a collaborator") from e

    log.info(
        "invite created wedding_id=%s email=%s role=%s status=%s by=%s",
        wedding_id,
        email,
        role.value,
        collaborator.status,
        inviter_id,
    )
    audit_log(
        db,
        wedding_id=wedding_id,
        user_id=inviter_id,
        action="INVITE_CREATED",
        entity_id=collaborator.id,
        meta={"email": email, "role": role.value, "status": collaborator.status},
        ip=ip,
    )

    inviter = get_user(db, inviter_id)
    _notify(
        dispatch,
        email=email,
        wedding_id=wedding_id,
        name=display_name,
        wedding_name=wedding.name,
        inviter_name=inviter.name if inviter else None,
        role=role.value,
    )
    return collaborator


# ---------------------------------
# Accept / decline
# ---------------------------------
def _respond(
    db: Session, *, user_id: int, wedding_id: int, status: Status, ip: Optional[str]
) -> Collaborator:
    user = _require_user(db, user_id)
    own = get_by_wedding_and_user(db, wedding_id, user_id)

    updated: Optional[Collaborator] = None
    if own is not None:
        if own.status == Status.PENDING.value:
            patch = {"status": status}
            if status == Status.ACCEPTED:
                patch["accepted_at"] = utcnow()
            updated = update_collaborator(db, own.id, patch, expected_status=Status.PENDING)
    else:
        invite = _unbound_invite_for(db, wedding_id, user)
        if invite is not None:
            updated = _bind_pending_invite(db, invite, user, status)

    if updated is None:
        raise NotFoundError("No pending invitation found")

    action = "INVITE_ACCEPTED" if status == Status.ACCEPTED else "INVITE_DECLINED"
    log.info("%s wedding_id=%s user_id=%s", action.lower(), wedding_id, user_id)
    audit_log(
        db,
        wedding_id=wedding_id,
        user_id=user_id,
        action=action,
        entity_id=updated.id,
        meta={"email": updated.email, "role": updated.role},
        ip=ip,
    )
    return updated


def accept_invitation(
    db: Session, *, user_id: int, wedding_id: int, ip: Optional[str] = None
) -> Collaborator:
    """pending → accepted. One-shot: NotFoundError if nothing is pending."""
    return _respond(db, user_id=user_id, wedding_id=wedding_id, status=Status.ACCEPTED, ip=ip)


def decline_invitation(
    db: Session, *, user_id: int, wedding_id: int, ip: Optional[str] = None
) -> Collaborator:
    """pending → declined. One-shot: NotFoundError if nothing is pending."""
    return _respond(db, user_id=user_id, wedding_id=wedding_id, status=Status.DECLINED, ip=ip)


# ---------------------------------
# Join by code (wedding id)
# ---------------------------------
def join_by_code(
    db: Session,
    *,
    user_id: int,
    wedding_id: int,
    default_role: Any = Role.FRIEND,
    ip: Optional[str] = None,
) -> Collaborator:
    """
    Self-service join:
      1) already linked → AlreadyCollaboratorError / InvitationPendingError,
      2) an email-only pending invite for this user → bind it and accept,
      3) otherwise create an accepted collaboration with `default_role`
         (any role but Owner).
    """
    default_role = parse_role(default_role)
    # knowing the wedding id is enough to join, so it must not grant role management
    if default_role == Role.OWNER:
        raise ValidationError("Owner cannot be chosen when joining a wedding")
    wedding = _require_wedding(db, wedding_id)
    user = _require_user(db, user_id)

    if wedding.owner_id == user_id:
        raise AlreadyCollaboratorError("You own this wedding")

    existing = get_by_wedding_and_user(db, wedding_id, user_id)
    if existing is not None:
        if existing.status == Status.PENDING.value:
            raise InvitationPendingError("You already have a pending invitation to this wedding")
        raise AlreadyCollaboratorError("You are already a collaborator on this wedding")

    invite = _unbound_invite_for(db, wedding_id, user)
    if invite is not None:
        joined = _bind_pending_invite(db, invite, user, Status.ACCEPTED)
        if joined is None:
            raise AlreadyCollaboratorError("You are already a collaborator on this wedding")
        via = "invite"
    else:
        try:
            joined = insert_collaborator(
                db,
                wedding_id=wedding_id,
                email=user.email,
                name=user.name,
                role=default_role,
                invited_by=user_id,
                user_id=user_id,
                status=Status.ACCEPTED,
                accepted_at=utcnow(),
            )
        except DuplicateCollaborationError as e:
            raise AlreadyCollaboratorError("You are already a collaborator on this wedding") from e
        via = "code"

    log.info(
        "wedding joined wedding_id=%s user_id=%s role=%s via=%s",
        wedding_id,
        user_id,
        joined.role,
        via,
    )
    audit_log(
        db,
        wedding_id=wedding_id,
        user_id=user_id,
        action="WEDDING_JOINED",
        entity_id=joined.id,
        meta={"role": joined.role, "via": via},
        ip=ip,
    )
    return joined


# ---------------------------------
# Role management
# ---------------------------------
def change_role(
    db: Session,
    *,
    actor_id: int,
    wedding_id: int,
    collaborator_id: int,
    new_role: Any,
    ip: Optional[str] = None,
) -> Collaborator:
    new_role = parse_role(new_role)
    ensure_can_manage_roles(db, actor_id, wedding_id)

    target = get_collaborator(db, wedding_id, collaborator_id)
    if target is None:
        raise NotFoundError("Collaborator not found")
    old_role = target.role

    # Only `role` is written; permissions are derived from it on read.
    updated = update_collaborator(db, target.id, {"role": new_role})
    if updated is None:
        raise NotFoundError("Collaborator not found")

    log.info(
        "role changed wedding_id=%s collaborator_id=%s %s -> %s by=%s",
        wedding_id,
        collaborator_id,
        old_role,
        new_role.value,
        actor_id,
    )
    audit_log(
        db,
        wedding_id=wedding_id,
        user_id=actor_id,
        action="COLLABORATOR_ROLE_CHANGED",
        entity_id=collaborator_id,
        meta={"from": old_role, "to": new_role.value},
        ip=ip,
    )
    return updated


def remove_collaborator(
    db: Session,
    *,
    actor_id: int,
    wedding_id: int,
    collaborator_id: int,
    ip: Optional[str] = None,
) -> None:
    ensure_can_manage_roles(db, actor_id, wedding_id)

    target = get_collaborator(db, wedding_id, collaborator_id)
    if target is None:
        raise NotFoundError("Collaborator not found")
    meta = {"email": target.email, "role": target.role, "status": target.status}

    delete_collaborator(db, target)

    log.info(
        "collaborator removed wedding_id=%s collaborator_id=%s by=%s",
        wedding_id,
        collaborator_id,
        actor_id,
    )
    audit_log(
        db,
        wedding_id=wedding_id,
        user_id=actor_id,
        action="COLLABORATOR_REMOVED",
        entity_id=collaborator_id,
        meta=meta,
        ip=ip,
    )


def list_collaborators(db: Session, *, user_id: int, wedding_id: int) -> List[Collaborator]:
    ensure_can_view(db, user_id, wedding_id)
    return list_for_wedding(db, wedding_id)

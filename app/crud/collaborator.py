# app/crud/collaborator.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import DuplicateCollaborationError
from app.core.permissions import Role, Status, parse_role
from app.crud.user import normalize_email
from app.models.collaborator import Collaborator

# Columns a caller may patch. Permissions have no column: they follow `role`.
_PATCHABLE = {"role", "status", "user_id", "accepted_at", "name"}


def get_collaborator(db: Session, wedding_id: int, collaborator_id: int) -> Optional[Collaborator]:
    return (
        db.query(Collaborator)
        .filter(Collaborator.id == collaborator_id, Collaborator.wedding_id == wedding_id)
        .first()
    )


def get_by_wedding_and_user(db: Session, wedding_id: int, user_id: int) -> Optional[Collaborator]:
    return (
        db.query(Collaborator)
        .filter(Collaborator.wedding_id == wedding_id, Collaborator.user_id == user_id)
        .first()
    )


def get_by_wedding_and_email(db: Session, wedding_id: int, email: str) -> Optional[Collaborator]:
    return (
        db.query(Collaborator)
        .filter(
            Collaborator.wedding_id == wedding_id,
            Collaborator.email == normalize_email(email),
        )
        .first()
    )


def get_accepted_by_user(db: Session, user_id: int) -> Optional[Collaborator]:
    """
    The user's active collaboration. A user is expected to hold at most one;
    if several exist the most recently accepted wins.
    """
    return (
        db.query(Collaborator)
        .filter(
            Collaborator.user_id == user_id,
            Collaborator.status == Status.ACCEPTED.value,
        )
        .order_by(Collaborator.accepted_at.desc(), Collaborator.id.desc())
        .first()
    )


def list_for_wedding(db: Session, wedding_id: int) -> List[Collaborator]:
    return (
        db.query(Collaborator)
        .filter(Collaborator.wedding_id == wedding_id)
        .order_by(Collaborator.invited_at.desc(), Collaborator.id.desc())
        .all()
    )


def insert_collaborator(
    db: Session,
    *,
    wedding_id: int,
    email: str,
    name: str,
    role: Role,
    invited_by: Optional[int],
    user_id: Optional[int] = None,
    status: Status = Status.PENDING,
    accepted_at: Optional[datetime] = None,
) -> Collaborator:
    """
    Inserts a collaboration record. The unique indexes on (wedding_id, email)
    and (wedding_id, user_id) decide races: the loser gets DuplicateCollaborationError.
    Only a pending record may be written without a bound user.
    """
    status = Status(status)
    if user_id is None and status != Status.PENDING:
        raise ValueError(f"A {status.value} collaborator needs a bound user_id")
    obj = Collaborator(
        wedding_id=wedding_id,
        user_id=user_id,
        email=normalize_email(email),
        name=name,
        role=parse_role(role).value,
        status=status.value,
        invited_by=invited_by,
        accepted_at=accepted_at,
    )
    db.add(obj)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateCollaborationError(
            f"Collaboration for {obj.email} already exists on wedding {wedding_id}"
        ) from e
    db.refresh(obj)
    return obj


def update_collaborator(
    db: Session,
    collaborator_id: int,
    patch: Dict[str, Any],
    *,
    expected_status: Optional[Status] = None,
    expect_unbound: bool = False,
) -> Optional[Collaborator]:
    """
    Single conditional UPDATE (compare-and-swap). Returns the fresh row, or None
    when no row matched the id plus guards (already transitioned, already bound, gone).
    """
    unknown = set(patch) - _PATCHABLE
    if unknown:
        raise ValueError(f"Cannot patch collaborator fields: {sorted(unknown)}")
    if "user_id" in patch and not expect_unbound:
        raise ValueError("user_id can only be set on an unbound collaborator")
    # status only ever leaves pending; accepted/declined are terminal
    if "status" in patch and (
        expected_status != Status.PENDING or Status(patch["status"]) == Status.PENDING
    ):
        raise ValueError("status can only be changed on a pending collaborator")

    values = dict(patch)
    if "role" in values:
        values["role"] = parse_role(values["role"]).value
    if "status" in values:
        values["status"] = Status(values["status"]).value

    q = db.query(Collaborator).filter(Collaborator.id == collaborator_id)
    if expected_status is not None:
        q = q.filter(Collaborator.status == Status(expected_status).value)
    if expect_unbound:
        q = q.filter(Collaborator.user_id.is_(None))

    try:
        matched = q.update(values, synchronize_session=False)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateCollaborationError(
            f"Update of collaborator {collaborator_id} violates a uniqueness constraint"
        ) from e

    if not matched:
        return None
    obj = db.get(Collaborator, collaborator_id)
    if obj is not None:
        db.refresh(obj)
    return obj


def delete_collaborator(db: Session, obj: Collaborator) -> None:
    db.delete(obj)
    db.commit()

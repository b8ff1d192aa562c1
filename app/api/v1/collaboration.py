# app/api/v1/collaboration.py
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status
from sqlalchemy.orm import Session

from app.core.auth import get_db, get_current_user
from app.models.user import User
from app.schemas.collaborator import (
    CollaboratorInvite,
    CollaboratorOut,
    CollaboratorRoleUpdate,
    JoinWedding,
    MyRoleOut,
)
from app.services import invitations
from app.services.access import resolve_access
from app.services.audit import ip_from_request
from app.services.notifications import dispatch_invitation

router = APIRouter(prefix="/collaboration")


# ----------------------------
# Join (declared before /{wedding_id} routes)
# ----------------------------
@router.post("/join", response_model=CollaboratorOut, status_code=status.HTTP_201_CREATED)
def api_join_wedding(
    payload: JoinWedding,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return invitations.join_by_code(
        db,
        user_id=current_user.id,
        wedding_id=payload.wedding_id,
        default_role=payload.role,
        ip=ip_from_request(request),
    )


# ----------------------------
# Read
# ----------------------------
@router.get("/{wedding_id}", response_model=List[CollaboratorOut])
def api_list_collaborators(
    wedding_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return invitations.list_collaborators(db, user_id=current_user.id, wedding_id=wedding_id)


@router.get("/{wedding_id}/my-role", response_model=MyRoleOut)
def api_my_role(
    wedding_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    access = resolve_access(db, current_user.id, wedding_id)
    return MyRoleOut(
        role=access.role,
        permissions=access.permissions,
        status=access.status,
        is_owner=access.is_owner,
    )


# ----------------------------
# Invite / respond
# ----------------------------
@router.post(
    "/{wedding_id}/invite",
    response_model=CollaboratorOut,
    status_code=status.HTTP_201_CREATED,
)
def api_invite(
    wedding_id: int,
    payload: CollaboratorInvite,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # email goes out after the response; the record is already committed
    return invitations.invite(
        db,
        inviter_id=current_user.id,
        wedding_id=wedding_id,
        email=payload.email,
        name=payload.name,
        role=payload.role,
        dispatch=lambda **kw: background_tasks.add_task(dispatch_invitation, **kw),
        ip=ip_from_request(request),
    )


@router.post("/{wedding_id}/accept", response_model=CollaboratorOut)
def api_accept(
    wedding_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return invitations.accept_invitation(
        db, user_id=current_user.id, wedding_id=wedding_id, ip=ip_from_request(request)
    )


@router.post("/{wedding_id}/decline", response_model=CollaboratorOut)
def api_decline(
    wedding_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return invitations.decline_invitation(
        db, user_id=current_user.id, wedding_id=wedding_id, ip=ip_from_request(request)
    )


# ----------------------------
# Manage
# ----------------------------
@router.put("/{wedding_id}/{collaborator_id}", response_model=CollaboratorOut)
def api_change_role(
    wedding_id: int,
    collaborator_id: int,
    payload: CollaboratorRoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return invitations.change_role(
        db,
        actor_id=current_user.id,
        wedding_id=wedding_id,
        collaborator_id=collaborator_id,
        new_role=payload.role,
        ip=ip_from_request(request),
    )


@router.delete("/{wedding_id}/{collaborator_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_remove_collaborator(
    wedding_id: int,
    collaborator_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invitations.remove_collaborator(
        db,
        actor_id=current_user.id,
        wedding_id=wedding_id,
        collaborator_id=collaborator_id,
        ip=ip_from_request(request),
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)

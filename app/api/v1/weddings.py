# app/api/v1/weddings.py
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth import get_db, get_current_user
from app.core.rbac import ensure_can_manage_roles, ensure_can_view
from app.crud.wedding import create_wedding, get_wedding
from app.models.user import User
from app.schemas.wedding import ActivityOut, WeddingCreate, WeddingOut
from app.services.audit import wedding_activity

router = APIRouter()


@router.post("/weddings", response_model=WeddingOut, status_code=status.HTTP_201_CREATED)
def api_create_wedding(
    payload: WeddingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return create_wedding(
        db,
        owner_id=current_user.id,
        name=payload.name,
        wedding_date=payload.wedding_date,
        venue=payload.venue,
        theme=payload.theme,
    )


@router.get("/weddings/{wedding_id}", response_model=WeddingOut)
def api_get_wedding(
    wedding_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_can_view(db, current_user.id, wedding_id)
    return get_wedding(db, wedding_id)


@router.get("/weddings/{wedding_id}/activity", response_model=List[ActivityOut])
def api_wedding_activity(
    wedding_id: int,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # the audit trail names collaborators and their e-mails; role managers only
    ensure_can_manage_roles(db, current_user.id, wedding_id)
    return wedding_activity(db, wedding_id, limit=limit)

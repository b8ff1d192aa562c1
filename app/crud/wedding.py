# app/crud/wedding.py
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from app.models.wedding import Wedding


def get_wedding(db: Session, wedding_id: int) -> Optional[Wedding]:
    return db.query(Wedding).filter(Wedding.id == wedding_id).first()


def create_wedding(
    db: Session,
    *,
    owner_id: int,
    name: str,
    wedding_date: Optional[date] = None,
    venue: Optional[str] = None,
    theme: Optional[str] = None,
) -> Wedding:
    # The owner is authorised through owner_id alone; no Collaborator row is written.
    wedding = Wedding(
        owner_id=owner_id,
        name=name,
        wedding_date=wedding_date,
        venue=venue or "",
        theme=theme or "",
    )
    db.add(wedding)
    db.commit()
    db.refresh(wedding)
    return wedding

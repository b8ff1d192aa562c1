# app/crud/user.py
from typing import Optional

from sqlalchemy.orm import Session

from app.models.user import User
from app.core.security import get_password_hash


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def create_user(db: Session, *, email: str, name: str, password: str) -> User:
    user = User(
        email=normalize_email(email),
        name=name.strip(),
        hashed_password=get_password_hash(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

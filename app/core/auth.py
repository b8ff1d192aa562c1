# app/core/auth.py
from typing import Iterator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.core.security import ALGORITHM, SECRET_KEY, verify_password
from app.crud.user import get_user_by_email
from app.db.session import SessionLocal
from app.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/login")


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _ensure_enabled(user: User) -> User:
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")
    return user


def _email_from_token(token: str) -> str:
    try:
        claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise _unauthorized()
    email = claims.get("sub")
    if not email:
        raise _unauthorized()
    return email


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    None for an unknown email or a wrong password (the caller answers 401
    without saying which). A disabled account is a 403.
    """
    user = get_user_by_email(db, email)
    if user is None:
        return None
    _ensure_enabled(user)
    return user if verify_password(password, user.hashed_password) else None


def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    user = get_user_by_email(db, _email_from_token(token))
    if user is None:
        raise _unauthorized()
    _ensure_enabled(user)

    # picked up by RequestLoggingMiddleware
    request.state.user_id = user.id
    return user

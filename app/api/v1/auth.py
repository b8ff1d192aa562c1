# app/api/v1/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.auth import authenticate_user, get_db, get_current_user
from app.core.security import create_access_token
from app.crud.user import create_user, get_user_by_email
from app.models.user import User
from app.schemas.user import Token, UserCreate, UserOut

log = logging.getLogger("app.auth")

router = APIRouter()


@router.post("/auth/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    if get_user_by_email(db, payload.email):
        raise HTTPException(status_code=409, detail="User with this email already exists")
    try:
        user = create_user(db, email=payload.email, name=payload.name, password=payload.password)
    except IntegrityError:
        # a concurrent registration took the email between the check and the insert
        db.rollback()
        raise HTTPException(status_code=409, detail="User with this email already exists")
    log.info("user registered user_id=%s", user.id)
    return user


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Token(access_token=create_access_token(user.email))


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user

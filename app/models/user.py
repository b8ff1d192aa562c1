# app/models/user.py
from sqlalchemy import Column, Integer, String, DateTime, Boolean, text

from app.db.base import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)

    # Always stored lowercase; lookups normalise before querying
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    hashed_password = Column(String, nullable=False)

    is_active = Column(Boolean, nullable=False, server_default=text("1"))
    created_at = Column(DateTime, nullable=False, default=utcnow)

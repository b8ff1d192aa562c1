# app/models/wedding.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date
from sqlalchemy.orm import relationship

from app.db.base import Base, utcnow


class Wedding(Base):
    __tablename__ = "weddings"

    id = Column(Integer, primary_key=True, index=True)
    # Ownership is fixed at creation; there is no transfer.
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    wedding_date = Column(Date, nullable=True)
    venue = Column(String(255), nullable=True)
    theme = Column(String(255), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    owner = relationship("User")

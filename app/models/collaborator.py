# app/models/collaborator.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, utcnow
from app.core.permissions import PermissionSet, Status, permissions_for


class Collaborator(Base):
    __tablename__ = "collaborators"

    id = Column(Integer, primary_key=True, index=True)
    wedding_id = Column(Integer, ForeignKey("weddings.id", ondelete="CASCADE"), nullable=False, index=True)

    # NULL while the invite is unbound (no account existed at invite time)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    email = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)

    # "Owner" | "Bride" | ... | "Other"; permissions are derived from it
    role = Column(String(32), nullable=False)
    status = Column(String(16), nullable=False, default=Status.PENDING.value, index=True)

    invited_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    invited_at = Column(DateTime, nullable=False, default=utcnow)
    accepted_at = Column(DateTime, nullable=True)

    wedding = relationship("Wedding", backref="collaborators", passive_deletes=True)
    user = relationship("User", foreign_keys=[user_id])

    __table_args__ = (
        UniqueConstraint("wedding_id", "email", name="uq_collaborator_wedding_email"),
        UniqueConstraint("wedding_id", "user_id", name="uq_collaborator_wedding_user"),
    )

    @property
    def permissions(self) -> PermissionSet:
        return permissions_for(self.role)

    @property
    def is_bound(self) -> bool:
        return self.user_id is not None

    def __repr__(self):
        return f"<Collaborator {self.email} -> wedding {self.wedding_id} as {self.role} ({self.status})>"

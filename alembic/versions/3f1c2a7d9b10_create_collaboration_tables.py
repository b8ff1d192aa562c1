"""create users, weddings and collaborators tables

Revision ID: 3f1c2a7d9b10
Revises:
Create Date: 2026-10-19 09:00:00
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f1c2a7d9b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "weddings",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("owner_id", sa.Integer, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("wedding_date", sa.Date, nullable=True),
        sa.Column("venue", sa.String(length=255), nullable=True),
        sa.Column("theme", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_weddings_id", "weddings", ["id"])
    op.create_index("ix_weddings_owner_id", "weddings", ["owner_id"])

    op.create_table(
        "collaborators",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("wedding_id", sa.Integer, nullable=False),
        sa.Column("user_id", sa.Integer, nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("invited_by", sa.Integer, nullable=True),
        sa.Column("invited_at", sa.DateTime, nullable=False),
        sa.Column("accepted_at", sa.DateTime, nullable=True),
        sa.ForeignKeyConstraint(["wedding_id"], ["weddings.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["invited_by"], ["users.id"], ondelete="SET NULL"),
        # one record per (wedding, email) and per (wedding, account)
        sa.UniqueConstraint("wedding_id", "email", name="uq_collaborator_wedding_email"),
        sa.UniqueConstraint("wedding_id", "user_id", name="uq_collaborator_wedding_user"),
    )
    op.create_index("ix_collaborators_id", "collaborators", ["id"])
    op.create_index("ix_collaborators_wedding_id", "collaborators", ["wedding_id"])
    op.create_index("ix_collaborators_user_id", "collaborators", ["user_id"])
    op.create_index("ix_collaborators_status", "collaborators", ["status"])


def downgrade():
    op.drop_table("collaborators")
    op.drop_table("weddings")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

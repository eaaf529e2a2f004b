"""
Add users and poker_sessions tables.

Revision ID: 5c1f0b7e2a9d
Revises:
Create Date: 2026-10-18 10:04:51.218337
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c1f0b7e2a9d"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "email",
            sa.String(length=255),
            nullable=False,
            comment="Login identifier, compared case-sensitively",
        ),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column(
            "password_hash",
            sa.String(length=255),
            nullable=False,
            comment="bcrypt hash - never serialized in responses",
        ),
        sa.Column(
            "cookie_consent",
            sa.Boolean(),
            server_default=sa.false(),
            nullable=False,
        ),
        sa.Column(
            "cookie_consent_date",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Set when consent is granted, cleared when revoked",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="users_email_key"),
        sa.UniqueConstraint("username", name="users_username_key"),
    )

    op.create_table(
        "poker_sessions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("session_date", sa.Date(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("buy_in_amount", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column(
            "rebuy_amount",
            sa.Numeric(precision=10, scale=2),
            server_default=sa.text("0.00"),
            nullable=False,
        ),
        sa.Column("cash_out_amount", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "duration_minutes >= 1", name="ck_poker_sessions_duration_positive",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_poker_sessions_user_id"), "poker_sessions", ["user_id"], unique=False,
    )
    op.create_index(
        op.f("ix_poker_sessions_session_date"), "poker_sessions", ["session_date"], unique=False,
    )
    op.create_index(
        "ix_poker_sessions_user_id_session_date",
        "poker_sessions",
        ["user_id", "session_date"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_poker_sessions_user_id_session_date", table_name="poker_sessions")
    op.drop_index(op.f("ix_poker_sessions_session_date"), table_name="poker_sessions")
    op.drop_index(op.f("ix_poker_sessions_user_id"), table_name="poker_sessions")
    op.drop_table("poker_sessions")
    op.drop_table("users")

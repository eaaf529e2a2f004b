"""User model for registered accounts."""
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.poker_session import PokerSession


class User(Base, UUIDv7Mixin, TimestampMixin):
    """User model - credentials plus cookie consent state."""

    __tablename__ = "users"

    # id provided by UUIDv7Mixin
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        comment="Login identifier, compared case-sensitively",
    )
    username: Mapped[str] = mapped_column(String(100), unique=True)
    password_hash: Mapped[str] = mapped_column(
        String(255),
        comment="bcrypt hash - never serialized in responses",
    )
    cookie_consent: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
    )
    cookie_consent_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Set when consent is granted, cleared when revoked",
    )

    poker_sessions: Mapped[list["PokerSession"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

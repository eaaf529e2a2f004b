"""Poker session model for tracked cash-game sessions."""
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, Numeric, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.user import User

# NUMERIC(10, 2) - exact decimal currency amounts
Money = Numeric(10, 2, asdecimal=True)


class PokerSession(Base, UUIDv7Mixin, TimestampMixin):
    """
    A single cash-game session owned by one user.

    Profit is derived at read time and never stored.
    """

    __tablename__ = "poker_sessions"
    __table_args__ = (
        CheckConstraint("duration_minutes >= 1", name="ck_poker_sessions_duration_positive"),
        Index("ix_poker_sessions_user_id_session_date", "user_id", "session_date"),
    )

    # id provided by UUIDv7Mixin
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    session_date: Mapped[date] = mapped_column(Date, index=True)
    duration_minutes: Mapped[int] = mapped_column(Integer)
    buy_in_amount: Mapped[Decimal] = mapped_column(Money)
    rebuy_amount: Mapped[Decimal] = mapped_column(
        Money,
        default=Decimal("0.00"),
        server_default=text("0.00"),
    )
    cash_out_amount: Mapped[Decimal] = mapped_column(Money)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship(back_populates="poker_sessions")

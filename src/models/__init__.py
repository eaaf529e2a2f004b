"""SQLAlchemy models."""
from models.base import Base, TimestampMixin, UUIDv7Mixin
from models.poker_session import PokerSession
from models.user import User

__all__ = [
    "Base",
    "PokerSession",
    "TimestampMixin",
    "UUIDv7Mixin",
    "User",
]

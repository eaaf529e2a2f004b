"""Service layer for poker session CRUD, profit, and CSV export."""
import logging
import re
from collections.abc import Iterable
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal, ROUND_HALF_UP
from enum import StrEnum
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models.poker_session import PokerSession
from schemas.poker_session import PokerSessionCreate, PokerSessionUpdate
from services.exceptions import (
    InvalidDateFormatError,
    InvalidDurationError,
    InvalidTimeRangeError,
    storage_errors,
)

logger = logging.getLogger(__name__)

# Strict ASCII YYYY-MM-DD; date.fromisoformat alone also accepts "20240115" etc.
_DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

CSV_HEADER = "Date,Duration (hours),Buy-in,Rebuy,Cash Out,Profit/Loss,Notes"

_CENTS = Decimal("0.01")
_TENTHS = Decimal("0.1")


class ExportTimeRange(StrEnum):
    """Time windows accepted by the CSV export."""

    SEVEN_DAYS = "7days"
    THIRTY_DAYS = "30days"
    NINETY_DAYS = "90days"
    ONE_YEAR = "1year"
    ALL = "all"


_RANGE_DAYS: dict[ExportTimeRange, int | None] = {
    ExportTimeRange.SEVEN_DAYS: 7,
    ExportTimeRange.THIRTY_DAYS: 30,
    ExportTimeRange.NINETY_DAYS: 90,
    ExportTimeRange.ONE_YEAR: 365,
    ExportTimeRange.ALL: None,
}


def parse_session_date(value: str) -> date:
    """
    Parse a YYYY-MM-DD string into a date.

    Raises:
        InvalidDateFormatError: If the shape is wrong or the date doesn't exist
            (e.g. month 13, February 30).
    """
    if not _DATE_PATTERN.match(value):
        raise InvalidDateFormatError(value)
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise InvalidDateFormatError(value) from e


def _check_duration(duration_minutes: int) -> None:
    if duration_minutes < 1:
        raise InvalidDurationError(duration_minutes)


def calculate_profit(buy_in: Decimal, rebuy: Decimal, cash_out: Decimal) -> float:
    """
    Compute cash_out - (buy_in + rebuy).

    Arithmetic is done on Decimal values; only the final result is converted
    to float for transport.
    """
    return float(cash_out - (buy_in + rebuy))


def session_profit(session: PokerSession) -> float:
    """Profit for a stored session."""
    return calculate_profit(
        session.buy_in_amount,
        session.rebuy_amount,
        session.cash_out_amount,
    )


async def create_session(
    db: AsyncSession,
    user_id: UUID,
    data: PokerSessionCreate,
) -> PokerSession:
    """
    Create a poker session owned by the user.

    Raises:
        InvalidDateFormatError: If session_date isn't a valid YYYY-MM-DD date.
        InvalidDurationError: If duration_minutes is below 1.
        StorageError: On database failure.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    session_date = parse_session_date(data.session_date)
    _check_duration(data.duration_minutes)

    poker_session = PokerSession(
        user_id=user_id,
        session_date=session_date,
        duration_minutes=data.duration_minutes,
        buy_in_amount=data.buy_in_amount,
        rebuy_amount=data.rebuy_amount if data.rebuy_amount is not None else Decimal("0"),
        cash_out_amount=data.cash_out_amount,
        notes=data.notes,
    )
    with storage_errors("create session"):
        db.add(poker_session)
        await db.flush()
        await db.refresh(poker_session)
    return poker_session


async def get_session(
    db: AsyncSession,
    user_id: UUID,
    session_id: UUID,
) -> PokerSession | None:
    """Get a session by ID, scoped to user. Returns None if not found or wrong user."""
    with storage_errors("fetch session"):
        result = await db.execute(
            select(PokerSession).where(
                PokerSession.id == session_id,
                PokerSession.user_id == user_id,
            ),
        )
        return result.scalar_one_or_none()


async def list_sessions(db: AsyncSession, user_id: UUID) -> list[PokerSession]:
    """Get all sessions for a user, most recent session date first."""
    with storage_errors("fetch sessions"):
        result = await db.execute(
            select(PokerSession)
            .where(PokerSession.user_id == user_id)
            .order_by(PokerSession.session_date.desc()),
        )
        return list(result.scalars().all())


async def update_session(
    db: AsyncSession,
    user_id: UUID,
    session_id: UUID,
    data: PokerSessionUpdate,
) -> PokerSession | None:
    """
    Apply a partial update. Returns None if not found or wrong user.

    Fields that are omitted (or sent as null) keep their stored value.

    Raises:
        InvalidDateFormatError: If a new session_date is malformed.
        InvalidDurationError: If a new duration_minutes is below 1.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    poker_session = await get_session(db, user_id, session_id)
    if poker_session is None:
        return None

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    if "session_date" in update_data:
        update_data["session_date"] = parse_session_date(update_data["session_date"])
    if "duration_minutes" in update_data:
        _check_duration(update_data["duration_minutes"])

    with storage_errors("update session"):
        for field, value in update_data.items():
            setattr(poker_session, field, value)
        poker_session.updated_at = func.now()
        await db.flush()
        await db.refresh(poker_session)
    return poker_session


async def delete_session(
    db: AsyncSession,
    user_id: UUID,
    session_id: UUID,
) -> bool:
    """
    Delete a session. Returns True if deleted, False if not found or wrong user.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    with storage_errors("delete session"):
        result = await db.execute(
            delete(PokerSession).where(
                PokerSession.id == session_id,
                PokerSession.user_id == user_id,
            ),
        )
    return result.rowcount > 0


def resolve_cutoff(time_range: str | None, today: date) -> date | None:
    """
    Map an export time range to its inclusive lower bound on session_date.

    Raises:
        InvalidTimeRangeError: If time_range is not a known value.
    """
    if time_range is None:
        return None
    try:
        days = _RANGE_DAYS[ExportTimeRange(time_range)]
    except ValueError as e:
        raise InvalidTimeRangeError(time_range, [r.value for r in ExportTimeRange]) from e
    if days is None:
        return None
    return today - timedelta(days=days)


def escape_csv_field(field: str) -> str:
    """Quote a field (doubling inner quotes) only if it contains a comma, quote, or newline."""
    if "," in field or '"' in field or "\n" in field:
        return '"' + field.replace('"', '""') + '"'
    return field


def format_duration_hours(duration_minutes: int) -> str:
    """Render minutes as hours with one decimal place, rounding half up."""
    hours = (Decimal(duration_minutes) / Decimal(60)).quantize(_TENTHS, rounding=ROUND_HALF_UP)
    return str(hours)


def _format_amount(amount: Decimal) -> str:
    return str(amount.quantize(_CENTS, rounding=ROUND_HALF_UP))


def render_sessions_csv(sessions: Iterable[PokerSession]) -> str:
    """Render sessions as CSV text, header first, one line per session."""
    lines = [CSV_HEADER]
    for s in sessions:
        profit = s.cash_out_amount - (s.buy_in_amount + s.rebuy_amount)
        lines.append(",".join([
            s.session_date.isoformat(),
            format_duration_hours(s.duration_minutes),
            _format_amount(s.buy_in_amount),
            _format_amount(s.rebuy_amount),
            _format_amount(s.cash_out_amount),
            _format_amount(profit),
            escape_csv_field(s.notes or ""),
        ]))
    return "\n".join(lines) + "\n"


async def export_sessions_csv(
    db: AsyncSession,
    user_id: UUID,
    time_range: str | None,
    today: date | None = None,
) -> str:
    """
    Export a user's sessions as CSV, oldest first.

    An unreadable dataset degrades to a header-only export rather than failing.

    Args:
        db: Database session.
        user_id: Owner of the sessions.
        time_range: One of ExportTimeRange values, or None for all sessions.
        today: Reference date for the cutoff. Defaults to the current UTC date.

    Raises:
        InvalidTimeRangeError: If time_range is unknown. Checked before querying.
    """
    if today is None:
        today = datetime.now(UTC).date()
    cutoff = resolve_cutoff(time_range, today)

    query = select(PokerSession).where(PokerSession.user_id == user_id)
    if cutoff is not None:
        query = query.where(PokerSession.session_date >= cutoff)
    query = query.order_by(PokerSession.session_date.asc())

    try:
        result = await db.execute(query)
        sessions = list(result.scalars().all())
    except SQLAlchemyError:
        logger.exception("Failed to load sessions for export, returning header only")
        sessions = []

    return render_sessions_csv(sessions)

"""Poker session CRUD and export endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user_id
from models.poker_session import PokerSession
from schemas.poker_session import (
    PokerSessionCreate,
    PokerSessionResponse,
    PokerSessionUpdate,
)
from schemas.user import MessageResponse
from services import poker_session_service
from services.exceptions import SessionNotFoundError

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _to_response(poker_session: PokerSession) -> PokerSessionResponse:
    return PokerSessionResponse(
        id=poker_session.id,
        user_id=poker_session.user_id,
        session_date=poker_session.session_date,
        duration_minutes=poker_session.duration_minutes,
        buy_in_amount=poker_session.buy_in_amount,
        rebuy_amount=poker_session.rebuy_amount,
        cash_out_amount=poker_session.cash_out_amount,
        notes=poker_session.notes,
        created_at=poker_session.created_at,
        updated_at=poker_session.updated_at,
        profit=poker_session_service.session_profit(poker_session),
    )


@router.post("", response_model=PokerSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    data: PokerSessionCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> PokerSessionResponse:
    """Record a new session for the current user."""
    poker_session = await poker_session_service.create_session(db, user_id, data)
    return _to_response(poker_session)


@router.get("", response_model=list[PokerSessionResponse])
async def list_sessions(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> list[PokerSessionResponse]:
    """List the current user's sessions, most recent first."""
    sessions = await poker_session_service.list_sessions(db, user_id)
    return [_to_response(s) for s in sessions]


@router.get(
    "/export",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
async def export_sessions(
    time_range: str | None = Query(
        default=None,
        description="One of 7days, 30days, 90days, 1year, all (default: all)",
    ),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> Response:
    """Download the current user's sessions as CSV, oldest first."""
    csv_text = await poker_session_service.export_sessions_csv(db, user_id, time_range)
    filename = f"poker-sessions-{time_range or 'all'}.csv"
    return Response(
        content=csv_text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{session_id}", response_model=PokerSessionResponse)
async def get_session(
    session_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> PokerSessionResponse:
    """Get a single session. Sessions of other users return 404."""
    poker_session = await poker_session_service.get_session(db, user_id, session_id)
    if poker_session is None:
        raise SessionNotFoundError()
    return _to_response(poker_session)


@router.put("/{session_id}", response_model=PokerSessionResponse)
async def update_session(
    session_id: UUID,
    data: PokerSessionUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> PokerSessionResponse:
    """Update the supplied fields of a session; omitted fields are kept."""
    poker_session = await poker_session_service.update_session(
        db, user_id, session_id, data,
    )
    if poker_session is None:
        raise SessionNotFoundError()
    return _to_response(poker_session)


@router.delete("/{session_id}", response_model=MessageResponse)
async def delete_session(
    session_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    """Delete a session. A second delete of the same id returns 404."""
    deleted = await poker_session_service.delete_session(db, user_id, session_id)
    if not deleted:
        raise SessionNotFoundError()
    return MessageResponse(message="Session deleted successfully")

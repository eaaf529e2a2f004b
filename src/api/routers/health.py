"""Health check endpoints."""
import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel
from sqlalchemy import text

from db.session import SessionProvider


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Check application and database health.

    Always answers 200; a database outage shows up as status "degraded".
    """
    provider: SessionProvider = request.app.state.session_provider
    db_status = "healthy"
    try:
        async with provider.acquire() as db:
            await db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database health check failed")
        db_status = "unhealthy"

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        database=db_status,
    )

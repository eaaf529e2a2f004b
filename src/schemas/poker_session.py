"""Pydantic schemas for poker session endpoints."""
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Non-negative currency amount matching the NUMERIC(10, 2) column
Amount = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


class PokerSessionCreate(BaseModel):
    """Schema for recording a new session."""

    session_date: str = Field(
        ...,
        description="Calendar date of the session in YYYY-MM-DD format",
        examples=["2024-01-15"],
    )
    duration_minutes: int = Field(..., ge=1, description="Session length in minutes")
    buy_in_amount: Amount
    rebuy_amount: Amount | None = Field(
        default=None,
        description="Total rebuys. Defaults to 0 when omitted.",
    )
    cash_out_amount: Amount
    notes: str | None = None


class PokerSessionUpdate(BaseModel):
    """
    Schema for partially updating a session.

    Omitted or null fields keep their stored value.
    """

    session_date: str | None = Field(default=None, examples=["2024-01-15"])
    duration_minutes: int | None = Field(default=None, ge=1)
    buy_in_amount: Amount | None = None
    rebuy_amount: Amount | None = None
    cash_out_amount: Amount | None = None
    notes: str | None = None


class PokerSessionResponse(BaseModel):
    """
    Session with its derived profit.

    Amounts serialize as decimal strings; profit is a number.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    session_date: date
    duration_minutes: int
    buy_in_amount: Decimal
    rebuy_amount: Decimal
    cash_out_amount: Decimal
    notes: str | None
    created_at: datetime
    updated_at: datetime
    profit: float

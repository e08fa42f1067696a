"""SQLModel table definitions for the ticketing data layer."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, JSON, String
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return a timezone aware UTC timestamp."""

    return datetime.now(timezone.utc)


def _uuid_str() -> str:
    """Generate a random UUID string."""

    return str(uuid.uuid4())


class EventTable(SQLModel, table=True):
    """Event records carrying the ticket configuration and inventory counters."""

    __tablename__ = "events"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    title: str = Field(sa_column=Column(String(255), nullable=False))
    tickets_enabled: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    tickets_available: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    tickets_sold: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    ticket_price: float = Field(default=0.0, sa_column=Column(Float, nullable=False, default=0.0))
    ticket_currency: str = Field(default="USD", sa_column=Column(String(3), nullable=False, default="USD"))
    ticket_verification_required: bool = Field(
        default=False, sa_column=Column(Boolean, nullable=False, default=False)
    )
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TicketTable(SQLModel, table=True):
    """Issued admission tickets."""

    __tablename__ = "tickets"

    id: str = Field(primary_key=True, index=True)
    ticket_number: str = Field(sa_column=Column(String(16), nullable=False, unique=True, index=True))
    verification_code: str | None = Field(default=None, sa_column=Column(String(6), nullable=True))
    event_id: str = Field(
        sa_column=Column(String(36), ForeignKey("events.id", ondelete="RESTRICT"), nullable=False, index=True)
    )
    user_id: str = Field(sa_column=Column(String(128), nullable=False, index=True))
    price: float = Field(default=0.0, sa_column=Column(Float, nullable=False, default=0.0))
    payment: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    status: str = Field(sa_column=Column(String(20), nullable=False))
    checked_in: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    checked_in_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    purchased_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TicketHoldTable(SQLModel, table=True):
    """Short-lived reservations of ticket numbers during purchase."""

    __tablename__ = "ticket_holds"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    ticket_number: str = Field(sa_column=Column(String(16), nullable=False, unique=True, index=True))
    user_id: str = Field(sa_column=Column(String(128), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    expires_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False, index=True))


class UserProfileTable(SQLModel, table=True):
    """Display information for ticket holders."""

    __tablename__ = "user_profiles"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    display_name: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))
    email: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))

"""Database table definitions."""

from .models import EventTable, TicketHoldTable, TicketTable, UserProfileTable

__all__ = ["EventTable", "TicketHoldTable", "TicketTable", "UserProfileTable"]

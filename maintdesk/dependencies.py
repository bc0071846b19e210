# maintdesk/dependencies.py
from datetime import datetime
from typing import Optional

from fastapi import Query

from maintdesk.middleware.auth_middleware import get_current_principal
from maintdesk.models.ticket import TicketPriority, TicketStatus
from maintdesk.schemas.ticket import SortField, TicketFilters

__all__ = ["get_current_principal", "get_ticket_filters"]


def get_ticket_filters(
    status: Optional[TicketStatus] = Query(None),
    priority: Optional[TicketPriority] = Query(None),
    command: Optional[str] = Query(None, max_length=100),
    unit: Optional[str] = Query(None, max_length=100),
    ticket_number: Optional[int] = Query(None, ge=1),
    is_recurring: Optional[bool] = Query(None),
    date_from: Optional[datetime] = Query(None, description="ISO datetime, inclusive"),
    date_to: Optional[datetime] = Query(None, description="ISO datetime, inclusive"),
    search: Optional[str] = Query(None, max_length=200),
    sort_by: SortField = Query("ticket_number"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
) -> TicketFilters:
    """Ticket list/export filters from the query string."""
    return TicketFilters(
        status=status,
        priority=priority,
        command=command,
        unit=unit,
        ticket_number=ticket_number,
        is_recurring=is_recurring,
        date_from=date_from,
        date_to=date_to,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )

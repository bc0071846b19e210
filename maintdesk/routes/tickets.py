# maintdesk/routes/tickets.py
"""Ticket routes"""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from maintdesk.core.database import get_db
from maintdesk.core.logger import get_logger
from maintdesk.dependencies import get_current_principal, get_ticket_filters
from maintdesk.schemas.common import APIResponse, PaginatedResponse, Pagination, ok
from maintdesk.schemas.ticket import (
    CommentRequest, CommentResponse, CreateTicketRequest, DashboardSummaryResponse,
    RecentTicketResponse, TicketFilters, TicketResponse, TicketStatsResponse,
    TicketSummaryResponse, UpdateTicketRequest,
)
from maintdesk.services.export_service import XLSX_MEDIA_TYPE, ExportService
from maintdesk.services.rbac_service import Principal
from maintdesk.services.stats_service import RECENT_DEFAULT_LIMIT, RECENT_MAX_LIMIT, StatsService
from maintdesk.services.ticket_service import TicketService

logger = get_logger(__name__)

router = APIRouter(prefix="/api/tickets", tags=["Tickets"])


# Fixed paths are declared before /{ticket_id}

@router.get("/stats")
def get_stats(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[TicketStatsResponse]:
    """Counts over the caller's visible tickets."""
    return ok(StatsService.compute_stats(db, principal))


@router.get("/recent")
def get_recent(
    limit: int = Query(RECENT_DEFAULT_LIMIT, ge=1, le=RECENT_MAX_LIMIT),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[list[RecentTicketResponse]]:
    return ok(StatsService.recent_tickets(db, principal, limit))


@router.get("/dashboard-summary")
def get_dashboard_summary(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[DashboardSummaryResponse]:
    return ok(StatsService.dashboard_summary(db, principal))


@router.get("/export")
def export_tickets(
    filters: TicketFilters = Depends(get_ticket_filters),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> Response:
    """Download the scoped, filtered tickets as an xlsx workbook."""
    content = ExportService.export_xlsx(db, principal, filters)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{ExportService.export_filename()}"'},
    )


@router.get("")
def list_tickets(
    filters: TicketFilters = Depends(get_ticket_filters),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[PaginatedResponse[TicketSummaryResponse]]:
    """List tickets (scope-filtered)."""
    tickets, total = TicketService.list_tickets(db, principal, filters, page=page, limit=limit)
    paginated = PaginatedResponse[TicketSummaryResponse](
        items=[TicketSummaryResponse.model_validate(t) for t in tickets],
        pagination=Pagination.build(page, limit, total),
    )
    return ok(paginated)


@router.get("/{ticket_id}")
def get_ticket(
    ticket_id: UUID,
    include_deleted: bool = Query(False),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[TicketResponse]:
    """Get ticket details with comments."""
    ticket = TicketService.get_ticket(db, principal, ticket_id, include_deleted=include_deleted)
    return ok(TicketResponse.model_validate(ticket))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_ticket(
    request: CreateTicketRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[TicketResponse]:
    """Create a new ticket."""
    ticket = TicketService.create_ticket(db, principal, request)
    return ok(TicketResponse.model_validate(ticket))


@router.put("/{ticket_id}")
def update_ticket(
    ticket_id: UUID,
    request: UpdateTicketRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[TicketResponse]:
    ticket = TicketService.update_ticket(db, principal, ticket_id, request)
    return ok(TicketResponse.model_validate(ticket))


@router.post("/{ticket_id}/comments", status_code=status.HTTP_201_CREATED)
def add_comment(
    ticket_id: UUID,
    request: CommentRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[CommentResponse]:
    """Append a comment to the ticket."""
    comment = TicketService.add_comment(db, principal, ticket_id, request)
    return ok(CommentResponse.model_validate(comment))


@router.delete("/{ticket_id}")
def delete_ticket(
    ticket_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[dict]:
    """Soft-delete a ticket (admin)."""
    ticket = TicketService.soft_delete(db, principal, ticket_id)
    return ok({"id": str(ticket.id), "ticket_number": ticket.ticket_number, "deleted": True})

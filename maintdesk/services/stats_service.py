# maintdesk/services/stats_service.py
"""Dashboard aggregates over the principal's ticket scope"""
from sqlalchemy import case, desc, func, select
from sqlalchemy.orm import Session

from maintdesk.core.logger import get_logger
from maintdesk.models.ticket import Ticket, TicketPriority, TicketStatus
from maintdesk.schemas.ticket import (
    DashboardSummaryResponse, RecentTicketResponse, TicketStatsResponse,
)
from maintdesk.services.rbac_service import Permission, Principal, RBACService
from maintdesk.services.scope_service import ScopeService

logger = get_logger(__name__)

RECENT_DEFAULT_LIMIT = 10
RECENT_MAX_LIMIT = 50


def _count_where(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


class StatsService:
    """Read-only projections; nothing here mutates tickets."""

    @staticmethod
    def compute_stats(db: Session, principal: Principal) -> TicketStatsResponse:
        """Six counts over the scoped, non-deleted tickets in one grouped query."""
        RBACService.require_permission(principal.role, Permission.TICKET_VIEW)

        stmt = select(
            func.count(Ticket.id).label("total"),
            _count_where(Ticket.status == TicketStatus.OPEN).label("open"),
            _count_where(Ticket.status == TicketStatus.IN_PROGRESS).label("in_progress"),
            _count_where(Ticket.status == TicketStatus.RESOLVED).label("resolved"),
            _count_where(Ticket.priority == TicketPriority.OPERATIONAL).label("operational_priority"),
            _count_where(Ticket.is_recurring.is_(True)).label("recurring"),
        ).where(*ScopeService.resolve_ticket_filter(principal))

        row = db.execute(stmt).one()
        return TicketStatsResponse(**{key: int(value or 0) for key, value in row._mapping.items()})

    @staticmethod
    def recent_tickets(
        db: Session,
        principal: Principal,
        limit: int = RECENT_DEFAULT_LIMIT,
    ) -> list[RecentTicketResponse]:
        """Newest-created tickets first, without comments."""
        RBACService.require_permission(principal.role, Permission.TICKET_VIEW)
        limit = max(1, min(limit, RECENT_MAX_LIMIT))

        stmt = (
            select(Ticket)
            .where(*ScopeService.resolve_ticket_filter(principal))
            .order_by(desc(Ticket.created_at), desc(Ticket.ticket_number))
            .limit(limit)
        )
        tickets = db.execute(stmt).scalars().all()
        return [RecentTicketResponse.model_validate(t) for t in tickets]

    @staticmethod
    def dashboard_summary(db: Session, principal: Principal) -> DashboardSummaryResponse:
        return DashboardSummaryResponse(
            stats=StatsService.compute_stats(db, principal),
            recent_tickets=StatsService.recent_tickets(db, principal, RECENT_DEFAULT_LIMIT),
        )

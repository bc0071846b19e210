# maintdesk/services/ticket_service.py
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import Select, and_, asc, case, desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from maintdesk.core.config import settings
from maintdesk.core.logger import get_logger
from maintdesk.models.ticket import (
    PRIORITY_SEVERITY, Ticket, TicketComment, TicketPriority, TicketStatus,
)
from maintdesk.schemas.ticket import (
    SUBJECT_DEFAULT_LENGTH, CommentRequest, CreateTicketRequest, TicketFilters, UpdateTicketRequest,
)
from maintdesk.services.numbering_service import NumberingService
from maintdesk.services.rbac_service import Permission, Principal, RBACService
from maintdesk.services.scope_service import ScopeService
from maintdesk.utils.datetime_utils import get_utc_now, to_naive_utc
from maintdesk.utils.exceptions import ConflictError, NotFoundError, ValidationError

logger = get_logger(__name__)

# Fields an update may not set to null
NON_NULLABLE_UPDATE_FIELDS = ("priority", "status", "description", "is_recurring")


class TicketService:
    """Ticket lifecycle: numbering, updates, comments and soft delete."""

    # ==================== QUERIES ====================

    @staticmethod
    def apply_filters(stmt: Select, principal: Principal, filters: Optional[TicketFilters]) -> Select:
        """Restrict a ticket select to the principal's scope AND the caller's filters."""
        stmt = stmt.where(*ScopeService.resolve_ticket_filter(principal))
        if filters is None:
            return stmt

        conditions = []
        if filters.status:
            conditions.append(Ticket.status == filters.status)
        if filters.priority:
            conditions.append(Ticket.priority == filters.priority)
        if filters.command:
            conditions.append(Ticket.command.icontains(filters.command, autoescape=True))
        if filters.unit:
            conditions.append(Ticket.unit.icontains(filters.unit, autoescape=True))
        if filters.ticket_number is not None:
            conditions.append(Ticket.ticket_number == filters.ticket_number)
        if filters.is_recurring is not None:
            conditions.append(Ticket.is_recurring.is_(filters.is_recurring))
        if filters.date_from:
            conditions.append(Ticket.open_date >= to_naive_utc(filters.date_from))
        if filters.date_to:
            conditions.append(Ticket.open_date <= to_naive_utc(filters.date_to))
        if filters.search and filters.search.strip():
            conditions.append(Ticket.description.icontains(filters.search.strip(), autoescape=True))

        if conditions:
            stmt = stmt.where(and_(*conditions))
        return stmt

    @staticmethod
    def _sort_key(sort_by: str):
        if sort_by == "priority":
            return case(
                {priority.value: rank for priority, rank in PRIORITY_SEVERITY.items()},
                value=Ticket.priority,
                else_=0,
            )
        return getattr(Ticket, sort_by)

    @staticmethod
    def list_tickets(
        db: Session,
        principal: Principal,
        filters: Optional[TicketFilters] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Ticket], int]:
        """List tickets visible to the principal; returns (page of tickets, total)."""
        RBACService.require_permission(principal.role, Permission.TICKET_VIEW)
        filters = filters or TicketFilters()

        base = TicketService.apply_filters(select(Ticket), principal, filters)
        total = db.execute(select(func.count()).select_from(base.subquery())).scalar_one()

        direction = asc if filters.sort_order == "asc" else desc
        stmt = base.order_by(direction(TicketService._sort_key(filters.sort_by)))
        if filters.sort_by != "ticket_number":
            stmt = stmt.order_by(desc(Ticket.ticket_number))
        stmt = stmt.offset((page - 1) * limit).limit(limit)

        tickets = list(db.execute(stmt).scalars().all())
        logger.info(f"Listed {len(tickets)} tickets (total: {total}) for {principal.username}")
        return tickets, total

    @staticmethod
    def _get_ticket_row(db: Session, ticket_id: UUID, include_deleted: bool = False) -> Ticket:
        stmt = select(Ticket).where(Ticket.id == ticket_id)
        if not include_deleted:
            stmt = stmt.where(Ticket.is_deleted.is_(False))
        ticket = db.execute(stmt).scalar_one_or_none()
        if not ticket:
            raise NotFoundError("Ticket", str(ticket_id))
        return ticket

    @staticmethod
    def get_ticket(
        db: Session,
        principal: Principal,
        ticket_id: UUID,
        include_deleted: bool = False,
    ) -> Ticket:
        """Get one ticket, enforcing scope. include_deleted is admin-only."""
        RBACService.require_permission(principal.role, Permission.TICKET_VIEW)
        if include_deleted:
            RBACService.require_permission(principal.role, Permission.TICKET_VIEW_DELETED)

        ticket = TicketService._get_ticket_row(db, ticket_id, include_deleted)
        ScopeService.check_ticket_access(principal, ticket, include_deleted=include_deleted)
        return ticket

    # ==================== CREATION ====================

    @staticmethod
    def create_ticket(db: Session, principal: Principal, request: CreateTicketRequest) -> Ticket:
        """Create a new open ticket with the next ticket number."""
        RBACService.require_permission(principal.role, Permission.TICKET_CREATE)

        fields = {
            "subject": request.subject or request.description[:SUBJECT_DEFAULT_LENGTH],
            "command": request.command or principal.command,
            "unit": request.unit or principal.unit,
            "priority": request.priority,
            "status": TicketStatus.OPEN,
            "description": request.description,
            "is_recurring": request.is_recurring,
            "open_date": get_utc_now(),
        }
        return TicketService.insert_ticket(db, fields, created_by=principal.username)

    @staticmethod
    def insert_ticket(
        db: Session,
        fields: dict[str, Any],
        created_by: str,
        ticket_number: Optional[int] = None,
    ) -> Ticket:
        """
        Persist a ticket under the numbering protocol and commit.

        Args:
            db: Session with no pending work; it is committed or rolled back here
            fields: Ticket column values (status may be given; close_date follows it)
            created_by: Username recorded as creator
            ticket_number: Explicit number (imports); allocated from the counter if None

        Raises:
            ConflictError: Explicit number taken, or allocation kept colliding
        """
        fields = dict(fields)
        status = fields.pop("status", TicketStatus.OPEN)
        max_retries = max(1, settings.ticket_number_max_retries)
        resync = False

        for attempt in range(1, max_retries + 1):
            try:
                if ticket_number is not None:
                    NumberingService.reserve(db, ticket_number)
                    number = ticket_number
                else:
                    if resync:
                        NumberingService.resync(db)
                    number = NumberingService.next_ticket_number(db)

                ticket = Ticket(ticket_number=number, created_by=created_by, **fields)
                ticket.set_status(status, get_utc_now())
                db.add(ticket)
                db.commit()
            except IntegrityError as e:
                db.rollback()
                if ticket_number is not None:
                    raise ConflictError(f"Ticket number {ticket_number} already exists") from e
                logger.warning(f"Ticket number collision (attempt {attempt}/{max_retries}): {e.orig}")
                resync = True
                continue

            logger.info(f"Ticket created: #{ticket.ticket_number} by {created_by}")
            return ticket

        raise ConflictError("Could not allocate a unique ticket number, please retry")

    # ==================== MUTATION ====================

    @staticmethod
    def update_ticket(
        db: Session,
        principal: Principal,
        ticket_id: UUID,
        request: UpdateTicketRequest,
    ) -> Ticket:
        """Apply a partial update. Status changes keep close_date consistent."""
        RBACService.require_permission(principal.role, Permission.TICKET_UPDATE)

        changes = request.model_dump(exclude_unset=True)
        errors = {
            field: "may not be null"
            for field in NON_NULLABLE_UPDATE_FIELDS
            if field in changes and changes[field] is None
        }
        if errors:
            raise ValidationError("Invalid ticket update", errors)

        ticket = TicketService._get_ticket_row(db, ticket_id)
        ScopeService.check_ticket_modify(principal, ticket)

        old_status = ticket.status
        if "status" in changes:
            ticket.set_status(TicketStatus(changes.pop("status")), get_utc_now())
        if "priority" in changes:
            changes["priority"] = TicketPriority(changes["priority"])
        for field, value in changes.items():
            setattr(ticket, field, value)

        ticket.last_modified_by = principal.username
        db.commit()

        if old_status != ticket.status:
            logger.info(f"Ticket #{ticket.ticket_number} status changed: {old_status.value} → {ticket.status.value}")
        logger.info(f"Ticket #{ticket.ticket_number} updated by {principal.username}")
        return ticket

    @staticmethod
    def add_comment(
        db: Session,
        principal: Principal,
        ticket_id: UUID,
        request: CommentRequest,
    ) -> TicketComment:
        """Append a comment to the ticket's thread."""
        RBACService.require_permission(principal.role, Permission.TICKET_COMMENT)

        ticket = TicketService._get_ticket_row(db, ticket_id)
        ScopeService.check_ticket_modify(principal, ticket)

        comment = ticket.append_comment(principal.username, request.content, get_utc_now())
        ticket.last_modified_by = principal.username
        db.commit()

        logger.info(f"Comment added to ticket #{ticket.ticket_number} by {principal.username}")
        return comment

    @staticmethod
    def soft_delete(db: Session, principal: Principal, ticket_id: UUID) -> Ticket:
        """Hide a ticket from all normal queries. Deleting twice is NotFound."""
        RBACService.require_permission(principal.role, Permission.TICKET_DELETE)

        ticket = TicketService._get_ticket_row(db, ticket_id)
        now: datetime = get_utc_now()
        ticket.is_deleted = True
        ticket.deleted_at = now
        ticket.last_modified_by = principal.username
        db.commit()

        logger.info(f"Ticket #{ticket.ticket_number} soft-deleted by {principal.username}")
        return ticket

# maintdesk/services/scope_service.py
"""
Ticket visibility scope.

Both the multi-row filter and the single-row access check are derived from
TicketScope.for_principal, so list and detail endpoints apply the same rule.
"""
from dataclasses import dataclass
from typing import Optional

from maintdesk.core.config import settings
from maintdesk.models.ticket import Ticket
from maintdesk.models.user import UserRole
from maintdesk.services.rbac_service import Principal, RBACService
from maintdesk.utils.exceptions import ForbiddenError, NotFoundError


@dataclass(frozen=True)
class TicketScope:
    """Organizational restriction; None means unrestricted on that level."""
    command: Optional[str] = None
    unit: Optional[str] = None
    include_deleted: bool = False

    @classmethod
    def for_principal(cls, principal: Principal, include_deleted: bool = False) -> "TicketScope":
        if principal.role == UserRole.ADMIN:
            return cls(include_deleted=include_deleted)
        if principal.role == UserRole.TECHNICIAN:
            return cls(command=principal.command, include_deleted=include_deleted)
        if principal.role == UserRole.VIEWER:
            return cls(command=principal.command, unit=principal.unit, include_deleted=include_deleted)
        # Unknown roles see nothing
        return cls(command="", unit="", include_deleted=False)

    def as_clauses(self) -> list:
        """SQL criteria for a ticket query."""
        clauses = []
        if not self.include_deleted:
            clauses.append(Ticket.is_deleted.is_(False))
        if self.command is not None:
            clauses.append(Ticket.command == self.command)
        if self.unit is not None:
            clauses.append(Ticket.unit == self.unit)
        return clauses

    def matches(self, ticket: Ticket) -> bool:
        """Same rule as as_clauses, evaluated on a loaded row."""
        if ticket.is_deleted and not self.include_deleted:
            return False
        if self.command is not None and ticket.command != self.command:
            return False
        if self.unit is not None and ticket.unit != self.unit:
            return False
        return True


class ScopeService:
    """Resolves which tickets a principal may see or change."""

    @staticmethod
    def resolve_ticket_filter(principal: Principal) -> list:
        """Criteria restricting a ticket query to the principal's scope."""
        return TicketScope.for_principal(principal).as_clauses()

    @staticmethod
    def resolve_ticket_access(principal: Principal, ticket: Ticket) -> bool:
        """Whether the principal may see this (loaded) ticket."""
        return TicketScope.for_principal(principal).matches(ticket)

    @staticmethod
    def can_modify_ticket(principal: Principal, ticket: Ticket) -> bool:
        """
        Update/comment authorization: technician or higher, and admin or same command.

        Coarser than the read scope: a technician may change any
        ticket of their command regardless of unit.
        """
        if not RBACService.has_minimum_role(principal.role, UserRole.TECHNICIAN):
            return False
        return principal.is_admin or principal.command == ticket.command

    @staticmethod
    def scope_denied(ticket: Ticket, message: str) -> Exception:
        """Error for an out-of-scope single ticket, per SCOPE_MISMATCH_AS_NOT_FOUND."""
        if settings.scope_mismatch_as_not_found:
            return NotFoundError("Ticket", str(ticket.id))
        return ForbiddenError(message)

    @staticmethod
    def check_ticket_access(principal: Principal, ticket: Ticket, include_deleted: bool = False) -> None:
        """Raise if the principal may not see the ticket."""
        if not TicketScope.for_principal(principal, include_deleted=include_deleted).matches(ticket):
            raise ScopeService.scope_denied(ticket, "Not allowed to view this ticket")

    @staticmethod
    def check_ticket_modify(principal: Principal, ticket: Ticket) -> None:
        """Raise if the principal may not update or comment on the ticket."""
        RBACService.require_role(principal.role, UserRole.TECHNICIAN)
        if not ScopeService.can_modify_ticket(principal, ticket):
            raise ScopeService.scope_denied(ticket, "Not allowed to modify this ticket")

"""Ticket visibility scope: list filter and single-ticket check agree"""
import pytest

from maintdesk.core.config import settings
from maintdesk.models.user import UserRole
from maintdesk.services.scope_service import ScopeService, TicketScope
from maintdesk.services.ticket_service import TicketService
from maintdesk.utils.exceptions import ForbiddenError, NotFoundError

from tests.conftest import create_ticket, principal_of

PLACEMENTS = [
    ("North", "Alpha"),
    ("North", "Bravo"),
    ("South", "Alpha"),
    ("South", "Charlie"),
]


@pytest.fixture
def scattered_tickets(db, admin):
    """One ticket in each (command, unit) placement, created by the admin."""
    principal = principal_of(admin)
    return [
        create_ticket(db, principal, command=command, unit=unit, description=f"Fault in {command}/{unit}")
        for command, unit in PLACEMENTS
    ]


class TestTicketScope:

    def test_admin_unrestricted(self, admin):
        scope = TicketScope.for_principal(principal_of(admin))
        assert scope.command is None and scope.unit is None

    def test_technician_restricted_to_command(self, technician):
        scope = TicketScope.for_principal(principal_of(technician))
        assert scope.command == "North"
        assert scope.unit is None

    def test_viewer_restricted_to_command_and_unit(self, viewer):
        scope = TicketScope.for_principal(principal_of(viewer))
        assert (scope.command, scope.unit) == ("North", "Alpha")


class TestScopeAgreement:

    @pytest.mark.parametrize("role", list(UserRole))
    def test_list_and_detail_agree(self, db, make_user, scattered_tickets, role):
        """A ticket is listed exactly when the single-ticket check allows it."""
        user = make_user(f"user.{role.value}", role, "North", "Alpha")
        principal = principal_of(user)

        listed, total = TicketService.list_tickets(db, principal, limit=100)
        listed_ids = {t.id for t in listed}
        assert total == len(listed_ids)

        for ticket in scattered_tickets:
            assert (ticket.id in listed_ids) == ScopeService.resolve_ticket_access(principal, ticket)

    def test_visible_counts_per_role(self, db, admin, technician, viewer, scattered_tickets):
        assert TicketService.list_tickets(db, principal_of(admin))[1] == 4
        assert TicketService.list_tickets(db, principal_of(technician))[1] == 2
        assert TicketService.list_tickets(db, principal_of(viewer))[1] == 1

    def test_soft_deleted_hidden_everywhere(self, db, admin, scattered_tickets):
        principal = principal_of(admin)
        TicketService.soft_delete(db, principal, scattered_tickets[0].id)

        _, total = TicketService.list_tickets(db, principal)
        assert total == 3
        assert not ScopeService.resolve_ticket_access(principal, scattered_tickets[0])


class TestScopeMismatch:

    def test_out_of_scope_detail_is_forbidden(self, db, viewer, scattered_tickets):
        south_ticket = scattered_tickets[2]
        with pytest.raises(ForbiddenError):
            TicketService.get_ticket(db, principal_of(viewer), south_ticket.id)

    def test_out_of_scope_detail_as_not_found(self, db, viewer, scattered_tickets, monkeypatch):
        monkeypatch.setattr(settings, "scope_mismatch_as_not_found", True)
        with pytest.raises(NotFoundError):
            TicketService.get_ticket(db, principal_of(viewer), scattered_tickets[2].id)

    def test_technician_modifies_any_unit_of_own_command(self, technician, scattered_tickets):
        principal = principal_of(technician)
        assert ScopeService.can_modify_ticket(principal, scattered_tickets[1])
        assert not ScopeService.can_modify_ticket(principal, scattered_tickets[2])

    def test_viewer_never_modifies(self, viewer, scattered_tickets):
        assert not ScopeService.can_modify_ticket(principal_of(viewer), scattered_tickets[0])

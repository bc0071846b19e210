"""Dashboard counts and recent tickets"""
from maintdesk.models.ticket import TicketPriority, TicketStatus
from maintdesk.schemas.ticket import UpdateTicketRequest
from maintdesk.services.stats_service import StatsService
from maintdesk.services.ticket_service import TicketService

from tests.conftest import create_ticket, principal_of


class TestComputeStats:

    def test_empty(self, db, viewer):
        stats = StatsService.compute_stats(db, principal_of(viewer))
        assert stats.total == 0
        assert stats.open == 0

    def test_counts(self, db, admin, technician):
        principal = principal_of(technician)
        a = create_ticket(db, principal, priority=TicketPriority.OPERATIONAL, is_recurring=True)
        b = create_ticket(db, principal, priority=TicketPriority.URGENT)
        create_ticket(db, principal)
        deleted = create_ticket(db, principal, priority=TicketPriority.OPERATIONAL)

        TicketService.update_ticket(db, principal, a.id, UpdateTicketRequest(status=TicketStatus.RESOLVED))
        TicketService.update_ticket(db, principal, b.id, UpdateTicketRequest(status=TicketStatus.IN_PROGRESS))
        TicketService.soft_delete(db, principal_of(admin), deleted.id)

        stats = StatsService.compute_stats(db, principal)
        assert stats.total == 3
        assert stats.open == 1
        assert stats.in_progress == 1
        assert stats.resolved == 1
        assert stats.operational_priority == 1
        assert stats.recurring == 1

    def test_status_counts_sum_to_total(self, db, technician):
        principal = principal_of(technician)
        for _ in range(4):
            create_ticket(db, principal)

        stats = StatsService.compute_stats(db, principal)
        assert stats.open + stats.in_progress + stats.resolved == stats.total

    def test_scoped_to_principal(self, db, admin, viewer):
        principal = principal_of(admin)
        create_ticket(db, principal, command="North", unit="Alpha")
        create_ticket(db, principal, command="South", unit="Alpha")

        assert StatsService.compute_stats(db, principal).total == 2
        assert StatsService.compute_stats(db, principal_of(viewer)).total == 1


class TestRecentTickets:

    def test_newest_first_and_limited(self, db, technician):
        principal = principal_of(technician)
        created = [create_ticket(db, principal).ticket_number for _ in range(5)]

        recent = StatsService.recent_tickets(db, principal, limit=3)
        assert [t.ticket_number for t in recent] == list(reversed(created))[:3]

    def test_limit_clamped(self, db, technician):
        principal = principal_of(technician)
        create_ticket(db, principal)
        assert len(StatsService.recent_tickets(db, principal, limit=500)) == 1

    def test_dashboard_summary(self, db, technician):
        principal = principal_of(technician)
        create_ticket(db, principal)

        summary = StatsService.dashboard_summary(db, principal)
        assert summary.stats.total == 1
        assert len(summary.recent_tickets) == 1

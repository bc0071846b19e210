"""Ticket number allocation"""
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from maintdesk.core.config import settings
from maintdesk.core.database import build_engine
from maintdesk.models import Base, Ticket, TicketCounter, User, UserRole
from maintdesk.models.ticket import TicketPriority
from maintdesk.schemas.ticket import CreateTicketRequest
from maintdesk.services.numbering_service import TICKET_SEQUENCE, NumberingService
from maintdesk.services.rbac_service import Principal
from maintdesk.services.ticket_service import TicketService
from maintdesk.utils.datetime_utils import get_utc_now
from maintdesk.utils.exceptions import ConflictError

from tests.conftest import create_ticket, principal_of


@pytest.fixture
def file_session_factory(tmp_path):
    """File-backed SQLite so separate connections really contend for the write lock"""
    engine = build_engine(f"sqlite:///{tmp_path / 'numbering.db'}")
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


class TestSequence:

    def test_first_ticket_is_one(self, db, technician):
        assert create_ticket(db, principal_of(technician)).ticket_number == 1

    def test_counter_seeded_past_existing_tickets(self, db, technician):
        db.add(Ticket(
            ticket_number=41, subject="Legacy", command="North", unit="Alpha",
            priority=TicketPriority.NORMAL, description="Imported before the counter",
            open_date=get_utc_now(), created_by="legacy", is_deleted=True,
        ))
        db.commit()

        # The soft-deleted #41 still blocks reuse
        assert create_ticket(db, principal_of(technician)).ticket_number == 42

    def test_numbers_not_reused_after_delete(self, db, admin):
        principal = principal_of(admin)
        first = create_ticket(db, principal)
        TicketService.soft_delete(db, principal, first.id)
        assert create_ticket(db, principal).ticket_number == first.ticket_number + 1

    def test_reserve_raises_counter(self, db, technician):
        principal = principal_of(technician)
        create_ticket(db, principal)

        NumberingService.reserve(db, 100)
        db.commit()
        assert create_ticket(db, principal).ticket_number == 101

    def test_reserve_never_lowers_counter(self, db, technician):
        principal = principal_of(technician)
        for _ in range(3):
            create_ticket(db, principal)

        NumberingService.reserve(db, 2)
        db.commit()
        counter = db.execute(select(TicketCounter).where(TicketCounter.name == TICKET_SEQUENCE)).scalar_one()
        assert counter.value == 3

    def test_explicit_duplicate_number_conflicts(self, db, technician):
        ticket = create_ticket(db, principal_of(technician))
        fields = {
            "subject": "Duplicate", "command": "North", "unit": "Alpha",
            "priority": TicketPriority.NORMAL, "description": "Same number again",
            "is_recurring": False, "open_date": get_utc_now(),
        }
        with pytest.raises(ConflictError):
            TicketService.insert_ticket(db, fields, created_by="admin", ticket_number=ticket.ticket_number)


    def test_collision_resyncs_counter(self, db, technician):
        principal = principal_of(technician)
        create_ticket(db, principal)
        db.add(Ticket(
            ticket_number=2, subject="Out of band", command="North", unit="Alpha",
            priority=TicketPriority.NORMAL, description="Written without the counter",
            open_date=get_utc_now(), created_by="legacy",
        ))
        db.commit()

        assert create_ticket(db, principal).ticket_number == 3
        assert create_ticket(db, principal).ticket_number == 4

    def test_persistent_collision_gives_up(self, db, technician, monkeypatch):
        taken = create_ticket(db, principal_of(technician)).ticket_number
        attempts = []

        def colliding_number(session):
            attempts.append(1)
            return taken

        monkeypatch.setattr(settings, "ticket_number_max_retries", 2)
        monkeypatch.setattr(NumberingService, "next_ticket_number", staticmethod(colliding_number))

        with pytest.raises(ConflictError):
            create_ticket(db, principal_of(technician))
        assert len(attempts) == 2

class TestConcurrentCreation:

    def test_fifty_concurrent_creates_are_distinct(self, file_session_factory):
        setup = file_session_factory()
        user = User(
            username="tech.north", password_hash="x", role=UserRole.TECHNICIAN,
            command="North", unit="Alpha",
        )
        setup.add(user)
        setup.commit()
        principal = Principal.from_user(user)

        # Seed the counter before the race
        first = TicketService.create_ticket(
            setup, principal, CreateTicketRequest(priority=TicketPriority.NORMAL, description="Seed ticket")
        )
        assert first.ticket_number == 1
        setup.close()

        def create_one(i: int) -> int:
            session = file_session_factory()
            try:
                ticket = TicketService.create_ticket(
                    session,
                    principal,
                    CreateTicketRequest(priority=TicketPriority.URGENT, description=f"Concurrent fault {i}"),
                )
                return ticket.ticket_number
            finally:
                session.close()

        with ThreadPoolExecutor(max_workers=8) as executor:
            numbers = list(executor.map(create_one, range(50)))

        assert len(set(numbers)) == 50
        assert sorted(numbers) == list(range(2, 52))

# maintdesk/services/numbering_service.py
"""
Ticket number sequence.

The counter row is incremented with a single UPDATE and read back inside the
same transaction, so the row (or database) write lock serializes concurrent
creators until they commit. The unique constraint on ticket.ticket_number is
the backstop; callers retry on IntegrityError.
"""
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from maintdesk.core.logger import get_logger
from maintdesk.models.ticket import Ticket, TicketCounter

logger = get_logger(__name__)

TICKET_SEQUENCE = "ticket_number"


class NumberingService:
    """Allocates strictly increasing ticket numbers."""

    @staticmethod
    def _current_max(db: Session) -> int:
        # Soft-deleted tickets count, so their numbers are never reused
        return db.execute(select(func.coalesce(func.max(Ticket.ticket_number), 0))).scalar_one()

    @staticmethod
    def _seed(db: Session, value: int) -> int:
        """Create the counter row. Raises IntegrityError on flush if another
        transaction seeded it first."""
        db.add(TicketCounter(name=TICKET_SEQUENCE, value=value))
        db.flush()
        logger.info(f"Ticket counter seeded at {value}")
        return value

    @staticmethod
    def next_ticket_number(db: Session) -> int:
        """Reserve the next number within the caller's transaction."""
        result = db.execute(
            update(TicketCounter)
            .where(TicketCounter.name == TICKET_SEQUENCE)
            .values(value=TicketCounter.value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return NumberingService._seed(db, NumberingService._current_max(db) + 1)

        return db.execute(
            select(TicketCounter.value).where(TicketCounter.name == TICKET_SEQUENCE)
        ).scalar_one()

    @staticmethod
    def reserve(db: Session, number: int) -> None:
        """Raise the counter to at least `number` (for explicitly numbered imports)."""
        result = db.execute(
            update(TicketCounter)
            .where(TicketCounter.name == TICKET_SEQUENCE, TicketCounter.value < number)
            .values(value=number)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            return

        exists = db.execute(
            select(TicketCounter.name).where(TicketCounter.name == TICKET_SEQUENCE)
        ).first()
        if exists is None:
            NumberingService._seed(db, max(NumberingService._current_max(db), number))

    @staticmethod
    def resync(db: Session) -> None:
        """Raise the counter to the highest ticket number on record.

        Called after a number collision, whose rollback also undid the increment.
        """
        latest = select(func.coalesce(func.max(Ticket.ticket_number), 0)).scalar_subquery()
        result = db.execute(
            update(TicketCounter)
            .where(TicketCounter.name == TICKET_SEQUENCE, TicketCounter.value < latest)
            .values(value=latest)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info("Ticket counter resynced to the highest existing ticket number")

# maintdesk/services/export_service.py
"""Scoped ticket export to an xlsx workbook"""
import io
from datetime import datetime
from typing import Optional

import pandas as pd
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from maintdesk.core.config import settings
from maintdesk.core.logger import get_logger
from maintdesk.models.ticket import Ticket
from maintdesk.schemas.ticket import TicketFilters
from maintdesk.services.rbac_service import Permission, Principal, RBACService
from maintdesk.services.ticket_service import TicketService
from maintdesk.utils.datetime_utils import get_utc_now

logger = get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SHEET_NAME = "Tickets"
DATE_FORMAT = "%d/%m/%Y %H:%M"

# Headers match the English import aliases so exports can be re-imported
EXPORT_COLUMNS = [
    "Ticket Number",
    "Subject",
    "Command",
    "Unit",
    "Priority",
    "Status",
    "Recurring",
    "Description",
    "Open Date",
    "Close Date",
    "Created By",
    "Assigned Technician",
    "Last Modified By",
]


def _format_date(value: Optional[datetime]) -> str:
    return value.strftime(DATE_FORMAT) if value else ""


class ExportService:

    @staticmethod
    def ticket_rows(db: Session, principal: Principal, filters: Optional[TicketFilters] = None) -> list[dict]:
        """Scoped tickets as export rows, newest number first."""
        RBACService.require_permission(principal.role, Permission.TICKET_VIEW)

        stmt = TicketService.apply_filters(select(Ticket), principal, filters)
        stmt = stmt.order_by(desc(Ticket.ticket_number)).limit(settings.export_max_rows)
        tickets = db.execute(stmt).scalars().all()

        return [
            {
                "Ticket Number": t.ticket_number,
                "Subject": t.subject,
                "Command": t.command,
                "Unit": t.unit,
                "Priority": t.priority.value,
                "Status": t.status.value,
                "Recurring": "yes" if t.is_recurring else "no",
                "Description": t.description,
                "Open Date": _format_date(t.open_date),
                "Close Date": _format_date(t.close_date),
                "Created By": t.created_by,
                "Assigned Technician": t.assigned_technician or "",
                "Last Modified By": t.last_modified_by or "",
            }
            for t in tickets
        ]

    @staticmethod
    def export_xlsx(db: Session, principal: Principal, filters: Optional[TicketFilters] = None) -> bytes:
        """Build the workbook bytes."""
        rows = ExportService.ticket_rows(db, principal, filters)
        df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=SHEET_NAME, index=False)

        logger.info(f"Exported {len(rows)} tickets for {principal.username}")
        return buffer.getvalue()

    @staticmethod
    def export_filename() -> str:
        return f"tickets_{get_utc_now().strftime('%Y-%m-%d')}.xlsx"

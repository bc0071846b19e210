# maintdesk/services/import_service.py
"""
Bulk ticket import from spreadsheet rows.

Rows are reconciled one at a time and each row commits on its own; a failing
row is rolled back and reported without stopping the batch.
"""
import io
import numbers
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import pandas as pd
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from maintdesk.core.config import settings
from maintdesk.core.logger import get_logger
from maintdesk.models.ticket import TicketPriority, TicketStatus
from maintdesk.schemas.imports import ImportedTicketRow, ImportResultResponse, ImportRowError
from maintdesk.schemas.ticket import SUBJECT_DEFAULT_LENGTH
from maintdesk.services.rbac_service import Permission, Principal, RBACService
from maintdesk.services.ticket_service import TicketService
from maintdesk.utils.datetime_utils import get_utc_now, to_naive_utc
from maintdesk.utils.exceptions import MaintdeskException, ValidationError

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = (".xlsx", ".csv")

# Header names accepted for each field, Hebrew first
COLUMN_ALIASES = {
    "ticket_number": ("מספר תקלה", "Ticket Number"),
    "subject": ("נושא", "Subject"),
    "command": ("פיקוד", "Command"),
    "unit": ("יחידה", "Unit"),
    "priority": ("עדיפות", "Priority"),
    "status": ("סטטוס", "Status"),
    "description": ("תיאור", "תיאור התקלה", "Description"),
    "is_recurring": ("תקלה חוזרת", "תקלה חוזרת?", "Recurring"),
    "open_date": ("תאריך פתיחה", "Open Date"),
    "close_date": ("תאריך סגירה", "Close Date"),
    "assigned_technician": ("טכנאי אחראי", "טכנאי מטפל", "Assigned Tech", "Assigned Technician"),
}

PRIORITY_VOCABULARY = {
    "normal": TicketPriority.NORMAL,
    "low": TicketPriority.NORMAL,
    "רגילה": TicketPriority.NORMAL,
    "נמוכה": TicketPriority.NORMAL,
    "urgent": TicketPriority.URGENT,
    "high": TicketPriority.URGENT,
    "דחופה": TicketPriority.URGENT,
    "גבוהה": TicketPriority.URGENT,
    "operational": TicketPriority.OPERATIONAL,
    "critical": TicketPriority.OPERATIONAL,
    "מבצעית": TicketPriority.OPERATIONAL,
    "קריטית": TicketPriority.OPERATIONAL,
}

STATUS_VOCABULARY = {
    "open": TicketStatus.OPEN,
    "new": TicketStatus.OPEN,
    "פתוח": TicketStatus.OPEN,
    "חדש": TicketStatus.OPEN,
    "in-progress": TicketStatus.IN_PROGRESS,
    "in progress": TicketStatus.IN_PROGRESS,
    "in_progress": TicketStatus.IN_PROGRESS,
    "working": TicketStatus.IN_PROGRESS,
    "בטיפול": TicketStatus.IN_PROGRESS,
    "resolved": TicketStatus.RESOLVED,
    "closed": TicketStatus.RESOLVED,
    "fixed": TicketStatus.RESOLVED,
    "תוקן": TicketStatus.RESOLVED,
}

TRUTHY_VALUES = {"true", "yes", "כן", "1", "נכון"}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _text(value: Any) -> Optional[str]:
    if _is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


class ImportService:
    """Maps loosely typed spreadsheet rows onto tickets."""

    # ==================== FILE DECODING ====================

    @staticmethod
    def read_spreadsheet(filename: str, content: bytes) -> list[dict[str, Any]]:
        """
        Decode an uploaded workbook (first sheet) or CSV into row dicts.

        Empty cells become None; header names are stripped.
        """
        suffix = Path(filename or "").suffix.lower()
        if suffix not in SUPPORTED_EXTENSIONS:
            raise ValidationError(
                "Unsupported file type",
                {"file": f"expected one of {', '.join(SUPPORTED_EXTENSIONS)}"},
            )
        if len(content) > settings.import_max_bytes:
            raise ValidationError("File too large", {"file": f"limit is {settings.import_max_bytes} bytes"})

        try:
            buffer = io.BytesIO(content)
            if suffix == ".csv":
                df = pd.read_csv(buffer, dtype=object)
            else:
                df = pd.read_excel(buffer, sheet_name=0, dtype=object, engine="openpyxl")
        except Exception as e:
            logger.warning(f"Could not read spreadsheet {filename}: {e}")
            raise ValidationError("Could not read spreadsheet", {"file": str(e)})

        df.columns = [str(column).strip() for column in df.columns]
        df = df.astype(object).where(pd.notna(df), None)
        logger.info(f"Read {len(df)} rows from {filename}")
        return df.to_dict(orient="records")

    # ==================== CELL NORMALIZATION ====================

    @staticmethod
    def pick(row: Mapping[str, Any], field: str) -> Any:
        """First non-blank value among the field's header aliases."""
        for alias in COLUMN_ALIASES[field]:
            value = row.get(alias)
            if not _is_blank(value):
                return value
        return None

    @staticmethod
    def _map_vocabulary(value: Any, vocabulary: dict, default, field: str, strict: bool):
        if _is_blank(value):
            return default
        mapped = vocabulary.get(str(value).strip().lower())
        if mapped is not None:
            return mapped
        if strict:
            raise ValidationError(f"Unrecognized {field}", {field: f"unrecognized value '{value}'"})
        return default

    @staticmethod
    def normalize_priority(value: Any, strict: bool = True) -> TicketPriority:
        """Map a priority cell; blank is normal, unknown is an error when strict."""
        return ImportService._map_vocabulary(value, PRIORITY_VOCABULARY, TicketPriority.NORMAL, "priority", strict)

    @staticmethod
    def normalize_status(value: Any, strict: bool = True) -> TicketStatus:
        """Map a status cell; blank is open, unknown is an error when strict."""
        return ImportService._map_vocabulary(value, STATUS_VOCABULARY, TicketStatus.OPEN, "status", strict)

    @staticmethod
    def parse_boolean(value: Any) -> bool:
        if _is_blank(value):
            return False
        if isinstance(value, bool):
            return value
        if isinstance(value, numbers.Number):
            return value == 1
        return str(value).strip().lower() in TRUTHY_VALUES

    @staticmethod
    def parse_date(value: Any, default: datetime) -> datetime:
        """Lenient, day-first date parsing; unparseable input yields default."""
        if _is_blank(value):
            return default
        if isinstance(value, pd.Timestamp):
            value = value.to_pydatetime()
        if isinstance(value, datetime):
            return to_naive_utc(value)

        parsed = pd.to_datetime(str(value).strip(), errors="coerce", dayfirst=True)
        if pd.isna(parsed):
            return default
        return to_naive_utc(parsed.to_pydatetime())

    @staticmethod
    def parse_ticket_number(value: Any) -> Optional[int]:
        """Positive integer, or None to allocate one."""
        if _is_blank(value) or isinstance(value, bool):
            return None
        if isinstance(value, numbers.Integral):
            number = int(value)
        elif isinstance(value, numbers.Real):
            if value != value or not float(value).is_integer():
                return None
            number = int(value)
        else:
            text = str(value).strip()
            if not text.isdecimal():
                return None
            try:
                number = int(text)
            except ValueError:
                return None
        return number if number > 0 else None

    # ==================== RECONCILIATION ====================

    @staticmethod
    def build_row(row: Mapping[str, Any], principal: Principal, strict: bool = True) -> ImportedTicketRow:
        """Map and validate one row. Raises ValidationError."""
        now = get_utc_now()
        description = _text(ImportService.pick(row, "description"))
        status = ImportService.normalize_status(ImportService.pick(row, "status"), strict)

        close_date = None
        if status == TicketStatus.RESOLVED:
            close_date = ImportService.parse_date(ImportService.pick(row, "close_date"), now)

        candidate = {
            "subject": _text(ImportService.pick(row, "subject"))
            or (description[:SUBJECT_DEFAULT_LENGTH] if description else None),
            "command": _text(ImportService.pick(row, "command")) or principal.command,
            "unit": _text(ImportService.pick(row, "unit")) or principal.unit,
            "priority": ImportService.normalize_priority(ImportService.pick(row, "priority"), strict),
            "status": status,
            "description": description,
            "is_recurring": ImportService.parse_boolean(ImportService.pick(row, "is_recurring")),
            "open_date": ImportService.parse_date(ImportService.pick(row, "open_date"), now),
            "close_date": close_date,
            "assigned_technician": _text(ImportService.pick(row, "assigned_technician")),
        }
        try:
            return ImportedTicketRow(**candidate)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "Invalid row")

    @staticmethod
    def _describe(exc: Exception) -> str:
        if isinstance(exc, MaintdeskException):
            if exc.details:
                fields = "; ".join(f"{field}: {msg}" for field, msg in exc.details.items())
                return f"{exc.message} ({fields})"
            return exc.message
        return f"Write failed: {exc.__class__.__name__}"

    @staticmethod
    def import_rows(
        db: Session,
        principal: Principal,
        rows: Iterable[Mapping[str, Any]],
        strict: bool = True,
    ) -> ImportResultResponse:
        """
        Import rows as tickets, isolating failures per row.

        Args:
            db: Session; committed once per imported row
            principal: Importing admin; supplies default command/unit
            rows: Row mappings keyed by header name
            strict: Reject non-blank priority/status values outside the vocabulary

        Returns:
            Totals with the first IMPORT_ERROR_DETAIL_LIMIT row errors (1-based row index)
        """
        RBACService.require_permission(principal.role, Permission.TICKET_IMPORT)

        total_rows = 0
        imported_count = 0
        errors: list[ImportRowError] = []

        for index, row in enumerate(rows, start=1):
            total_rows += 1
            try:
                mapped = ImportService.build_row(row, principal, strict)
                fields = mapped.model_dump()
                fields["last_modified_by"] = principal.username
                TicketService.insert_ticket(
                    db,
                    fields,
                    created_by=principal.username,
                    ticket_number=ImportService.parse_ticket_number(ImportService.pick(row, "ticket_number")),
                )
                imported_count += 1
            except (MaintdeskException, SQLAlchemyError) as e:
                db.rollback()
                message = ImportService._describe(e)
                logger.warning(f"Import row {index} failed: {message}")
                errors.append(ImportRowError(row=index, message=message))
            except Exception as e:
                db.rollback()
                logger.exception(f"Import row {index} failed")
                errors.append(ImportRowError(row=index, message=ImportService._describe(e)))

        success_rate = round(imported_count / total_rows * 100, 1) if total_rows else 0.0
        logger.info(
            f"Import completed by {principal.username}: {imported_count}/{total_rows} imported, {len(errors)} errors"
        )
        return ImportResultResponse(
            total_rows=total_rows,
            imported_count=imported_count,
            error_count=len(errors),
            errors=errors[: settings.import_error_detail_limit],
            success_rate=success_rate,
        )

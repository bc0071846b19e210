# maintdesk/routes/imports.py
"""Spreadsheet import routes (admin)"""
from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from maintdesk.core.database import get_db
from maintdesk.core.logger import get_logger
from maintdesk.dependencies import get_current_principal
from maintdesk.schemas.common import APIResponse, ok
from maintdesk.schemas.imports import ImportResultResponse
from maintdesk.services.import_service import ImportService
from maintdesk.services.rbac_service import Permission, Principal, RBACService

logger = get_logger(__name__)

router = APIRouter(prefix="/api/import", tags=["Import"])


@router.post("/tickets")
def import_tickets(
    file: UploadFile = File(...),
    strict: bool = Query(True, description="Reject unrecognized priority/status values"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[ImportResultResponse]:
    """
    Import tickets from an .xlsx or .csv file.

    Rows fail independently; the response lists the first row errors.
    """
    # Checked before the upload is read
    RBACService.require_permission(principal.role, Permission.TICKET_IMPORT)

    content = file.file.read()
    rows = ImportService.read_spreadsheet(file.filename, content)
    result = ImportService.import_rows(db, principal, rows, strict=strict)
    return ok(result)

# maintdesk/routes/commands.py
"""Commands and units reference data"""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from maintdesk.core.database import get_db
from maintdesk.dependencies import get_current_principal
from maintdesk.schemas.common import APIResponse, ok
from maintdesk.schemas.reference import (
    CommandResponse, CreateCommandRequest, CreateUnitRequest, UnitResponse,
)
from maintdesk.services.rbac_service import Principal
from maintdesk.services.reference_service import ReferenceService

router = APIRouter(prefix="/api/commands", tags=["Reference"])


@router.get("")
def list_commands(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[list[CommandResponse]]:
    commands = ReferenceService.list_commands(db)
    return ok([CommandResponse.model_validate(c) for c in commands])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_command(
    request: CreateCommandRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[CommandResponse]:
    command = ReferenceService.create_command(db, principal, request)
    return ok(CommandResponse.model_validate(command))


@router.delete("/{command_id}")
def deactivate_command(
    command_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[CommandResponse]:
    command = ReferenceService.deactivate_command(db, principal, command_id)
    return ok(CommandResponse.model_validate(command))


@router.get("/{command_id}/units")
def list_units(
    command_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[list[UnitResponse]]:
    units = ReferenceService.list_units(db, command_id)
    return ok([UnitResponse.model_validate(u) for u in units])


@router.post("/{command_id}/units", status_code=status.HTTP_201_CREATED)
def create_unit(
    command_id: UUID,
    request: CreateUnitRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[UnitResponse]:
    unit = ReferenceService.create_unit(db, principal, command_id, request)
    return ok(UnitResponse.model_validate(unit))


@router.delete("/{command_id}/units/{unit_id}")
def deactivate_unit(
    command_id: UUID,
    unit_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> APIResponse[UnitResponse]:
    unit = ReferenceService.deactivate_unit(db, principal, command_id, unit_id)
    return ok(UnitResponse.model_validate(unit))

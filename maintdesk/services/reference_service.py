# maintdesk/services/reference_service.py
"""Commands and units (reference data)"""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from maintdesk.core.logger import get_logger
from maintdesk.models.command import Command, Unit
from maintdesk.schemas.reference import CreateCommandRequest, CreateUnitRequest
from maintdesk.services.rbac_service import Permission, Principal, RBACService
from maintdesk.utils.exceptions import ConflictError, NotFoundError

logger = get_logger(__name__)


class ReferenceService:
    """Service for managing commands and their units"""

    @staticmethod
    def list_commands(db: Session) -> list[Command]:
        stmt = select(Command).where(Command.is_active.is_(True)).order_by(Command.name)
        return list(db.execute(stmt).scalars().all())

    @staticmethod
    def _get_active_command(db: Session, command_id: UUID) -> Command:
        command = db.get(Command, command_id)
        if not command or not command.is_active:
            raise NotFoundError("Command", str(command_id))
        return command

    @staticmethod
    def list_units(db: Session, command_id: UUID) -> list[Unit]:
        """Active units of an active command."""
        ReferenceService._get_active_command(db, command_id)
        stmt = (
            select(Unit)
            .where(Unit.command_id == command_id, Unit.is_active.is_(True))
            .order_by(Unit.name)
        )
        return list(db.execute(stmt).scalars().all())

    @staticmethod
    def create_command(db: Session, principal: Principal, request: CreateCommandRequest) -> Command:
        """
        Create a command.

        Raises:
            ConflictError: If a command with this name exists
        """
        RBACService.require_permission(principal.role, Permission.REFERENCE_MANAGE)

        existing = db.execute(select(Command).where(Command.name == request.name)).scalar_one_or_none()
        if existing:
            raise ConflictError(f"Command '{request.name}' already exists")

        command = Command(name=request.name, description=request.description or "")
        db.add(command)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError(f"Command '{request.name}' already exists") from e

        logger.info(f"Command created: {command.name} by {principal.username}")
        return command

    @staticmethod
    def create_unit(db: Session, principal: Principal, command_id: UUID, request: CreateUnitRequest) -> Unit:
        """
        Create a unit under an active command.

        Raises:
            NotFoundError: If the command does not exist or is inactive
            ConflictError: If the command already has a unit with this name
        """
        RBACService.require_permission(principal.role, Permission.REFERENCE_MANAGE)

        command = ReferenceService._get_active_command(db, command_id)
        existing = db.execute(
            select(Unit).where(Unit.command_id == command.id, Unit.name == request.name)
        ).scalar_one_or_none()
        if existing:
            raise ConflictError(f"Unit '{request.name}' already exists in command '{command.name}'")

        unit = Unit(name=request.name, command_id=command.id, description=request.description or "")
        db.add(unit)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError(f"Unit '{request.name}' already exists in command '{command.name}'") from e

        logger.info(f"Unit created: {command.name}/{unit.name} by {principal.username}")
        return unit

    @staticmethod
    def deactivate_command(db: Session, principal: Principal, command_id: UUID) -> Command:
        RBACService.require_permission(principal.role, Permission.REFERENCE_MANAGE)

        command = ReferenceService._get_active_command(db, command_id)
        command.is_active = False
        db.commit()
        logger.info(f"Command deactivated: {command.name} by {principal.username}")
        return command

    @staticmethod
    def deactivate_unit(db: Session, principal: Principal, command_id: UUID, unit_id: UUID) -> Unit:
        RBACService.require_permission(principal.role, Permission.REFERENCE_MANAGE)

        unit = db.get(Unit, unit_id)
        if not unit or not unit.is_active or unit.command_id != command_id:
            raise NotFoundError("Unit", str(unit_id))
        unit.is_active = False
        db.commit()
        logger.info(f"Unit deactivated: {unit.name} by {principal.username}")
        return unit

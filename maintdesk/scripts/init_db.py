# maintdesk/scripts/init_db.py
"""
Database initialization script - create tables, reference data and an admin

Usage:
    python -m maintdesk.scripts.init_db

This script will:
1. Create all database tables
2. Create the bootstrap command and unit (BOOTSTRAP_ADMIN_COMMAND / _UNIT)
3. Create the bootstrap admin (BOOTSTRAP_ADMIN_USERNAME)
4. Print the admin password if one was generated
"""
import secrets
import string
import sys
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from maintdesk.core.config import settings
from maintdesk.core.database import check_connection, get_db_context, init_db
from maintdesk.core.logger import get_logger
from maintdesk.models import Command, Unit, User, UserRole
from maintdesk.services.auth_service import AuthService

logger = get_logger(__name__)


def generate_password(length: int = 16) -> str:
    """Random password with at least one letter of each case and one digit."""
    required = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
    ]
    alphabet = string.ascii_letters + string.digits
    chars = required + [secrets.choice(alphabet) for _ in range(length - len(required))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def ensure_reference_data(db: Session, command_name: str, unit_name: str) -> None:
    """Create the command and unit if they are missing."""
    command = db.execute(select(Command).where(Command.name == command_name)).scalar_one_or_none()
    if not command:
        command = Command(name=command_name, description="")
        db.add(command)
        db.flush()
        logger.info(f"Created command: {command_name}")

    unit = db.execute(
        select(Unit).where(Unit.command_id == command.id, Unit.name == unit_name)
    ).scalar_one_or_none()
    if not unit:
        db.add(Unit(name=unit_name, command_id=command.id, description=""))
        logger.info(f"Created unit: {command_name}/{unit_name}")

    db.commit()


def ensure_admin(db: Session, username: str, password: str, command: str, unit: str) -> bool:
    """
    Create the bootstrap admin unless the username exists.

    Returns:
        True if a user was created
    """
    existing = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if existing:
        logger.info(f"Admin '{username}' already exists")
        return False

    db.add(User(
        username=username,
        password_hash=AuthService.hash_password(password),
        role=UserRole.ADMIN,
        command=command,
        unit=unit,
        is_active=True,
    ))
    db.commit()
    logger.info(f"Created admin: {username}")
    return True


def initialize_database(password: Optional[str] = None) -> bool:
    """Create tables, reference data and the bootstrap admin."""
    logger.info("Maintdesk database initialization")

    if not check_connection():
        logger.error("Cannot connect to database")
        return False

    if not init_db():
        logger.error("Failed to initialize database tables")
        return False

    generated = password is None
    password = password or generate_password()

    with get_db_context() as db:
        try:
            ensure_reference_data(db, settings.bootstrap_admin_command, settings.bootstrap_admin_unit)
            created = ensure_admin(
                db,
                settings.bootstrap_admin_username,
                password,
                settings.bootstrap_admin_command,
                settings.bootstrap_admin_unit,
            )
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create bootstrap data: {e}")
            return False

    if created and generated:
        print("\n" + "=" * 60)
        print("ADMIN CREDENTIALS (shown once)")
        print(f"   Username: {settings.bootstrap_admin_username}")
        print(f"   Password: {password}")
        print("=" * 60 + "\n")

    return True


if __name__ == "__main__":
    try:
        success = initialize_database(settings.bootstrap_admin_password)
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        logger.info("Initialization cancelled by user")
        sys.exit(1)

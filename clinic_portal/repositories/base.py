"""Shared statement execution for repositories."""

from typing import Any

import structlog
from sqlalchemy.engine import Result
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from clinic_portal.core.exceptions import StorageException

logger = structlog.get_logger()


async def execute(db: AsyncSession, stmt: Executable, operation: str) -> Result[Any]:
    """
    Execute a statement, turning unexpected backend failures into StorageException.

    IntegrityError is re-raised untouched so callers can map constraint
    violations onto domain errors.

    Args:
        db: Database session
        stmt: Statement to execute
        operation: Name used in the log event

    Returns:
        Statement result

    Raises:
        IntegrityError: A constraint rejected the write
        StorageException: Any other database failure
    """
    try:
        return await db.execute(stmt)
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        logger.error("storage_error", operation=operation, error=str(e))
        await db.rollback()
        raise StorageException() from e


async def commit(db: AsyncSession, operation: str) -> None:
    """Commit the session with the same error mapping as ``execute``."""
    try:
        await db.commit()
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        logger.error("storage_error", operation=operation, error=str(e))
        await db.rollback()
        raise StorageException() from e

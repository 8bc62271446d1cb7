"""
Database error handling utilities.

Centralizes the pattern of:
1. Rolling back the async session on error
2. Logging the error with context
3. Raising an appropriate HTTPException

Usage:
    from ielts_mock.core.db_error_handling import handle_db_error

    async with handle_db_error(db, "save test result"):
        session.band = 7.0
        await db.commit()

Optimistic-lock conflicts (StaleDataError) are reported as 409 so the
client can reload and retry instead of seeing a server error.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ielts_mock.core.error_responses import (
    ErrorMessages,
    raise_conflict,
    raise_server_error,
)


logger = logging.getLogger(__name__)


class DatabaseOperationError(Exception):
    """
    Exception raised when a database operation fails outside an HTTP request.

    Attributes:
        operation_name: Human-readable name of the operation that failed
        original_error: The underlying exception that caused the failure
        message: The formatted error message
    """

    def __init__(
        self,
        operation_name: str,
        original_error: Exception,
        message: Optional[str] = None,
    ):
        self.operation_name = operation_name
        self.original_error = original_error
        self.message = message or f"Failed to {operation_name}: {str(original_error)}"
        super().__init__(self.message)


@asynccontextmanager
async def handle_db_error(
    db: AsyncSession,
    operation_name: str,
    *,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    detail: Optional[str] = None,
    log_level: int = logging.ERROR,
    context: Optional[Dict[str, Any]] = None,
) -> AsyncGenerator[None, None]:
    """
    Async context manager for handling database errors consistently.

    HTTPExceptions raised inside the block pass through untouched. Any other
    exception rolls the session back, is logged with context, and becomes an
    HTTPException with the given status and a user-facing detail.

    Args:
        db: The async session to roll back on error
        operation_name: Human-readable name for logs (e.g. "save test result")
        status_code: Status used for the raised HTTPException. Defaults to 500.
        detail: User-facing message. Defaults to a generic failure message.
        log_level: Logging level for the error. Defaults to ERROR.
        context: Extra fields attached to the log record

    Raises:
        HTTPException: 409 on optimistic-lock conflicts, status_code otherwise
    """
    try:
        yield
    except HTTPException:
        raise
    except StaleDataError as e:
        await db.rollback()
        logger.warning(
            f"Concurrent update detected during {operation_name}: {e}",
            extra=context or {},
        )
        raise_conflict(ErrorMessages.CONCURRENT_UPDATE)
    except Exception as e:
        await db.rollback()
        logger.log(
            log_level,
            f"Database error during {operation_name}: {e}",
            exc_info=True,
            extra=context or {},
        )
        detail = detail or ErrorMessages.database_operation_failed(operation_name)
        if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
            raise_server_error(detail)
        raise HTTPException(status_code=status_code, detail=detail)

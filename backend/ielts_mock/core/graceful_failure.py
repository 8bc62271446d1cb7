"""
Graceful failure utilities.

For follow-up work that must not fail the request it rides on, such as
recomputing the overall band after a submission or invalidating cached
views:
1. Attempt the operation
2. Log any exception with context
3. Continue without raising

This is distinct from `db_error_handling.py`, which handles critical errors
that require rollback and an HTTP error response.

Usage:
    from ielts_mock.core.graceful_failure import graceful_failure

    with graceful_failure("invalidate result cache", logger):
        invalidate_tags(f"student-results:{student_id}")

    async with async_graceful_failure("update overall band", logger, exc_info=True):
        await recompute_overall_band(db, session)
"""

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Generator, Optional

from ielts_mock.observability import capture_error


def _log_failure(
    operation_name: str,
    logger: logging.Logger,
    error: Exception,
    log_level: int,
    exc_info: bool,
    context: Optional[dict[str, Any]],
) -> None:
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        message = f"Failed to {operation_name} ({context_str}): {error}"
    else:
        message = f"Failed to {operation_name}: {error}"

    logger.log(log_level, message, exc_info=exc_info)
    capture_error(
        error,
        context=context,
        level="warning",
        tags={"error_type": "GracefulFailure", "operation": operation_name},
    )


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[dict[str, Any]] = None,
) -> Generator[None, None, None]:
    """
    Context manager for non-critical operations that should not block execution.

    Unlike `handle_db_error`, this does not raise, does not roll back the
    session, and does not stop execution.

    Args:
        operation_name: Human-readable name of the operation for logging
        logger: The logger instance to use for logging errors
        log_level: Logging level for error messages. Defaults to WARNING.
        exc_info: Whether to include exception traceback in log
        context: Additional fields included in the log message
            (e.g., {"session_id": 123})
    """
    try:
        yield
    except Exception as e:
        _log_failure(operation_name, logger, e, log_level, exc_info, context)


@asynccontextmanager
async def async_graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[dict[str, Any]] = None,
) -> AsyncGenerator[None, None]:
    """Async counterpart of graceful_failure for awaited follow-up work."""
    try:
        yield
    except Exception as e:
        _log_failure(operation_name, logger, e, log_level, exc_info, context)

"""Sentry error tracking.

Initialized once from the application lifespan. When SENTRY_DSN is empty
every function here is a no-op, so callers never need to check.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

logger = logging.getLogger(__name__)


def _serialize_value(value: Any) -> Any:
    """Convert a context value to something JSON-compatible."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize_value(item) for item in value]
    return str(value)


def init_sentry(
    dsn: str,
    *,
    environment: str,
    release: str | None = None,
    traces_sample_rate: float = 0.0,
) -> bool:
    """Initialize the Sentry SDK with FastAPI/Starlette integrations.

    Returns:
        True if Sentry was initialized, False if skipped (no DSN) or failed.
        Failures are logged, never raised.
    """
    if not dsn:
        logger.debug("Sentry initialization skipped (DSN not configured)")
        return False

    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            release=release,
            traces_sample_rate=traces_sample_rate,
            integrations=[
                LoggingIntegration(level=None, event_level=None),
                FastApiIntegration(transaction_style="endpoint"),
                StarletteIntegration(transaction_style="endpoint"),
            ],
            send_default_pii=False,
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}", exc_info=True)
        return False

    logger.info(
        f"Sentry initialized for environment '{environment}' "
        f"with {traces_sample_rate * 100:.0f}% trace sampling"
    )
    return True


def is_enabled() -> bool:
    return sentry_sdk.get_client().is_active()


def capture_error(
    exception: BaseException,
    *,
    context: dict[str, Any] | None = None,
    level: str = "error",
    tags: dict[str, str] | None = None,
) -> str | None:
    """Capture an exception and send it to Sentry.

    Args:
        exception: The exception to capture.
        context: Extra data attached under the "additional" context.
        level: Severity ("debug", "info", "warning", "error", "fatal").
        tags: Tags for filtering in Sentry.

    Returns:
        Event ID if captured, None if Sentry is not initialized.
    """
    if not is_enabled():
        return None

    with sentry_sdk.new_scope() as scope:
        if context:
            scope.set_context("additional", _serialize_value(context))
        if tags:
            for key, value in tags.items():
                scope.set_tag(key, value)
        scope.set_level(level)
        return sentry_sdk.capture_exception(exception)


def flush(timeout: float = 2.0) -> None:
    """Flush pending events on shutdown."""
    if is_enabled():
        sentry_sdk.flush(timeout=timeout)

"""
Sentry Error Tracking
=====================

Centralized error tracking using Sentry.

Related files:
- app/main.py: Initializes Sentry on startup, captures unexpected storage errors
- app/routers/auth.py: Sets/clears user context on login, register and logout

Setup:
1. Create a project with the "FastAPI" platform on sentry.io
2. Copy its DSN to the SENTRY_DSN environment variable

Without SENTRY_DSN every function here is a no-op apart from logging.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

logger = logging.getLogger(__name__)

_initialized = False


def init_sentry(dsn: Optional[str], environment: str = "development") -> bool:
    """
    Initialize the Sentry SDK.

    Should be called once during application startup.

    Returns:
        True if Sentry was initialized, False when no DSN is configured.
    """
    global _initialized

    if not dsn:
        logger.info("[SENTRY] SENTRY_DSN not set - error tracking disabled")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoggingIntegration(
                level=logging.INFO,         # INFO+ as breadcrumbs
                event_level=logging.ERROR,  # ERROR+ as events
            ),
        ],
        traces_sample_rate=0.1,
        # User context is set explicitly; never attach request bodies (passwords)
        send_default_pii=False,
        release=os.environ.get("RELEASE_VERSION"),
    )
    _initialized = True

    logger.info(f"[SENTRY] Initialized for {environment} environment")
    return True


def set_user_context(user_id: str, email: Optional[str] = None) -> None:
    """Attach the authenticated user to subsequent Sentry events."""
    if not _initialized:
        return
    sentry_sdk.set_user({"id": user_id, "email": email})


def clear_user_context() -> None:
    """Remove user info, e.g. on logout."""
    if not _initialized:
        return
    sentry_sdk.set_user(None)


def capture_exception(exception: Exception, extra: Optional[dict] = None) -> None:
    """
    Report a handled exception.

    Args:
        exception: The exception to capture
        extra: Additional context to attach to the event
    """
    if not _initialized:
        logger.error(f"[SENTRY] Exception (Sentry disabled): {exception!r}")
        return

    with sentry_sdk.new_scope() as scope:
        for key, value in (extra or {}).items():
            scope.set_extra(key, value)
        sentry_sdk.capture_exception(exception)

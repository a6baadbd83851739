"""
Telemetry Module
================

Observability for the CRM backend.

Components:
- sentry.py: Error tracking (sentry-sdk)
- Standard-library logging with bracketed component prefixes
  ([AUTH], [CAMPAIGNS], [INFLUENCERS], [REMINDERS], [DB], [SENTRY])

Environment Variables:
- SENTRY_DSN: Sentry project DSN (optional)
- ENVIRONMENT: Environment name reported to Sentry

Related modules:
- app/main.py: Initializes Sentry on startup
- app/routers/auth.py: Sets user context on login/register
"""

from app.telemetry.sentry import (
    init_sentry,
    set_user_context,
    clear_user_context,
    capture_exception,
)


__all__ = [
    "init_sentry",
    "set_user_context",
    "clear_user_context",
    "capture_exception",
]

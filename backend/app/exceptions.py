"""
CRM Domain Exceptions
=====================

Error kinds raised by the service layer (app/services/*).

Every core operation surfaces exactly one of these on failure. The transport
layer (app/main.py) maps them to HTTP status codes; services never raise
HTTPException themselves.

RELATED FILES
-------------
- app/services/*.py: Raise these exceptions
- app/main.py: Registers the exception handlers (kind -> status code)
"""

from typing import Optional


class CrmError(Exception):
    """
    Base exception for all service-layer errors.

    USAGE:
        try:
            engine.add_influencer_to_campaign(...)
        except CrmError as e:
            return {"error": e.message}
    """

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CrmError):
    """Malformed input: bad format, length, range or missing required field."""

    status_code = 400


class AuthenticationError(CrmError):
    """
    Credential mismatch or invalid/expired/absent session.

    The message is deliberately generic. It never says whether the email or
    the password was wrong.
    """

    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class ConflictError(CrmError):
    """Uniqueness violation (duplicate email, duplicate association)."""

    status_code = 409


class NotFoundError(CrmError):
    """Referenced entity is absent (or not visible to the caller)."""

    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[object] = None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")

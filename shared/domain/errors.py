"""
Error taxonomy of the booking portal.

Every failure raised by the core carries the HTTP status it maps to and a
message that is safe to show to a guest.
"""

from __future__ import annotations


class PortalError(Exception):
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None, *, detail: str | None = None):
        self.public_message = message or self.default_message
        # Internal context for logs, never rendered to clients.
        self.detail = detail
        super().__init__(detail or self.public_message)


class ValidationError(PortalError):
    """Malformed or inconsistent input."""

    status_code = 400
    default_message = "Invalid request"


class AuthError(PortalError):
    """Bad signature, OTP or magic-link token."""

    status_code = 400
    default_message = "Authentication failed"


class NotFoundError(PortalError):
    status_code = 404
    default_message = "Not found"


class ConflictError(PortalError):
    """Requested dates overlap a confirmed booking."""

    status_code = 409
    default_message = "The selected dates are not available"


class StateError(PortalError):
    """Transition not allowed from the record's current state."""

    status_code = 409
    default_message = "Booking cannot be changed in its current state"


class ExternalServiceError(PortalError):
    """Payment processor, messaging channel or store failure."""

    status_code = 500
    default_message = "Something went wrong. Please try again later."

    def __init__(self, detail: str | None = None):
        # The public message is always the generic one.
        super().__init__(None, detail=detail)

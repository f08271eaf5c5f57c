"""
Domain errors raised by the services.

Each error carries a human-readable message and the HTTP status it maps to;
the exception handlers in main turn them into {"detail": message} responses.
"""


class PortalError(Exception):
    """Base class for every error the services report to the caller."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """Malformed or missing input."""

    status_code = 400


class NotFoundError(PortalError):
    """The referenced student or drive does not exist."""

    status_code = 404


class InvalidStateError(PortalError):
    """The operation is not allowed in the entity's current lifecycle state."""

    status_code = 400


class ConflictError(PortalError):
    """The operation would break a uniqueness or dose inventory rule."""

    status_code = 409


class StoreError(PortalError):
    """The database failed in a way no other error describes."""

    status_code = 503

"""
Error Taxonomy Module

Every failure the service or the synchronization client reports is one of the
classes below. Each carries the HTTP status it maps to, so the API layer and the
client transport translate in both directions from a single table.
"""


class CRMError(Exception):
    """Base class for all pipeline errors."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CRMError):
    """A required field is missing or a value is not acceptable."""
    status_code = 400


class NotFoundError(CRMError):
    """An id or a nested position does not resolve to a record."""
    status_code = 404


class ConflictError(CRMError):
    """A write was based on a stale revision, or a commit is already in flight."""
    status_code = 409


class StaleReferenceError(ConflictError):
    """A cached nested position now points at a different entry."""


class TransportError(CRMError):
    """The store or the remote API could not be reached."""
    status_code = 503


STATUS_TO_ERROR = {
    400: ValidationError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}


def error_for_status(status_code: int, message: str) -> CRMError:
    """Build the error class matching an HTTP status returned by the API."""
    error_class = STATUS_TO_ERROR.get(status_code, TransportError)
    return error_class(message)

# errors.py
"""Domain errors raised by the service layer.

Each error carries the HTTP-ish status a routing layer would map it to, so
callers can translate without inspecting messages.
"""

from __future__ import annotations


class DomainError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Malformed or missing input."""
    status_code = 400


class ForbiddenError(DomainError):
    """Authenticated, but not allowed to touch this resource."""
    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """Uniqueness or state conflict."""
    status_code = 409


class StorageError(DomainError):
    """The store failed to commit; the whole operation was rolled back."""
    status_code = 500

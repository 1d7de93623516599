"""Typed errors raised by the service layer.

Each error carries the HTTP status the API layer answers with; the message
is returned to the caller unchanged.
"""

from __future__ import annotations


class ShelterSyncError(Exception):
    """Base class for business-rule failures."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ShelterSyncError):
    """Raised when a referenced pet, request or user does not exist."""

    status_code = 404


class ValidationError(ShelterSyncError):
    """Raised when an operation would violate a business invariant."""

    status_code = 400


class AuthorizationError(ShelterSyncError):
    """Raised when the caller lacks the required role or ownership."""

    status_code = 403


class AuthenticationError(ShelterSyncError):
    """Raised when caller identity is missing or invalid."""

    status_code = 401


class ConflictError(ShelterSyncError):
    """Raised when a unique value (such as an email) is already taken."""

    status_code = 409


__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "NotFoundError",
    "ShelterSyncError",
    "ValidationError",
]

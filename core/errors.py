"""
core/errors.py -- Typed error taxonomy shared by every layer.

Domain and service code raise these; only the HTTP boundary (api/main.py)
turns them into status codes and the JSON error envelope. Each family carries
a default HTTP status so the boundary needs a single exception handler rather
than one per error class.

  ValidationFailed      400  bad input shape or length
  AuthenticationFailed  401  bad, missing, expired or stale credential
  AuthorizationFailed   403  valid identity, wrong owner
  NotFound              404  entity absent
  Conflict              409  uniqueness violation
  InfrastructureError   500  store or signing unavailable

Messages are written for API clients. They must never say whether a username
or a password was the wrong half of a credential pair.

Layer rule: core/ is the kernel. No imports from api/, auth/ or blog/.
"""

from __future__ import annotations


class BlogError(Exception):
    """Base class for every expected failure in the application."""

    status_code: int = 500
    code: str = "error"
    message: str = "Request failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


# ---------------------------------------------------------------------------
# Families
# ---------------------------------------------------------------------------


class ValidationFailed(BlogError):
    status_code = 400
    code = "validation_error"
    message = "Request validation failed."


class AuthenticationFailed(BlogError):
    status_code = 401
    code = "unauthenticated"
    message = "Authentication required."


class AuthorizationFailed(BlogError):
    status_code = 403
    code = "forbidden"
    message = "You are not allowed to perform this action."


class NotFound(BlogError):
    status_code = 404
    code = "not_found"
    message = "Resource not found."


class Conflict(BlogError):
    status_code = 409
    code = "conflict"
    message = "Resource already exists."


class InfrastructureError(BlogError):
    status_code = 500
    code = "internal_error"
    message = "An unexpected error occurred."

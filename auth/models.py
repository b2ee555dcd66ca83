"""
auth/models.py -- Domain dataclasses and rules for user accounts.

Pattern: Data class plus the few invariants that belong to the shape itself.
Stores and services do the I/O; the rules here are pure so every caller
(HTTP route, CLI, tests) passes through the same choke point.

Layer rule: no imports from api/ or blog/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from core.errors import AuthenticationFailed, Conflict, NotFound, ValidationFailed

PASSWORD_MIN_LENGTH = 8
# bcrypt only reads the first 72 bytes and bcrypt>=5 refuses longer input.
PASSWORD_MAX_BYTES = 72


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class PasswordTooShort(ValidationFailed):
    code = "password_too_short"
    message = f"Password must be at least {PASSWORD_MIN_LENGTH} characters long."


class PasswordTooLong(ValidationFailed):
    code = "password_too_long"
    message = f"Password must be at most {PASSWORD_MAX_BYTES} bytes long."


class IncorrectPassword(ValidationFailed):
    code = "incorrect_password"
    message = "Current password is incorrect."


class InvalidCredentials(AuthenticationFailed):
    code = "invalid_credentials"
    message = "Invalid username or password."


class AccountInactive(AuthenticationFailed):
    code = "account_inactive"
    message = "Account is not active."


class DuplicateUsername(Conflict):
    code = "duplicate_username"
    message = "Username is already taken."


class DuplicateEmail(Conflict):
    code = "duplicate_email"
    message = "Email is already registered."


class UserNotFound(NotFound):
    code = "user_not_found"
    message = "User not found."


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@dataclass
class User:
    """A registered account.

    password_changed_at is the password epoch: every token carries the value
    it had at issuance, and the auth gate rejects tokens whose copy is older
    than the stored one. It only ever moves forward.

    id is None before the record is written to the database.
    """

    username: str
    email: str
    password_hash: str
    password_changed_at: datetime
    id: int | None = None
    first_name: str = ""
    last_name: str = ""
    is_active: bool = True
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""
    last_login: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Identity:
    """The authenticated caller attached to a request by the auth gate.

    Handlers take this as an explicit parameter; ownership decisions use
    user_id from here, never an id supplied in the request body.
    """

    user_id: int
    password_epoch: datetime


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def validate_password(secret: str) -> None:
    """Raise if secret does not satisfy the password policy.

    Every path that sets a password calls this. Complexity or breach-list
    checks belong here too if they are ever added.
    """
    if len(secret) < PASSWORD_MIN_LENGTH:
        raise PasswordTooShort()
    if len(secret.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise PasswordTooLong()

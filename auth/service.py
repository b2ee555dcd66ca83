"""
auth/service.py -- Account business logic: registration, login, password and
profile changes.

All rules that involve the store live here; the pure rules live in
auth/models.py. Errors are the typed conditions from auth/models.py and
core/errors.py -- the HTTP layer maps them to status codes.

Security notes:
  Anti-enumeration: an unknown username and a wrong password both raise
  InvalidCredentials, and bcrypt runs against a dummy digest when the user does
  not exist so the response time does not give the difference away either.

  AccountInactive is only raised after the password has verified. A caller
  that does not know the password learns nothing about the account state.

  Password epoch: change_password() always moves password_changed_at strictly
  forward, even when the clock has not ticked since the last change. Every
  token minted before the change then fails the auth gate's epoch check.

Hashing is CPU-bound. The HTTP routes that reach register/login/
change_password are sync handlers, so FastAPI runs each call on its worker
thread pool rather than on the event loop.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from auth.hashing import DEFAULT_COST, hash_password, verify_password
from auth.models import (
    AccountInactive,
    DuplicateEmail,
    DuplicateUsername,
    IncorrectPassword,
    InvalidCredentials,
    User,
    UserNotFound,
    validate_password,
)
from auth.store import UserStore
from auth.tokens import TokenService

logger = logging.getLogger("blogapi.auth.service")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def next_password_epoch(previous: datetime | None, now: datetime | None = None) -> datetime:
    """Return the epoch to store for a new password: now, but never <= previous."""
    now = now or _utc_now()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class UserService:
    """Account operations over a UserStore.

    Usage:
        users = UserService(store, tokens, bcrypt_cost=settings.bcrypt_cost)
        user = users.register("alice", "alice@example.com", "s3cret-pass")
        token, user = users.login("alice", "s3cret-pass")
    """

    def __init__(self, store: UserStore, tokens: TokenService, bcrypt_cost: int = DEFAULT_COST) -> None:
        self.store = store
        self.tokens = tokens
        self.bcrypt_cost = bcrypt_cost
        # Timing equalization hash for unknown usernames, at the same cost as
        # real digests so both branches do the same bcrypt work.
        self._dummy_hash = hash_password("blogapi_timing_dummy", cost=bcrypt_cost)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
    ) -> User:
        """Create an account. Uniqueness is checked before anything is written."""
        if self.store.get_by_username(username) is not None:
            raise DuplicateUsername()
        if self.store.get_by_email(email) is not None:
            raise DuplicateEmail()

        validate_password(password)

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password, cost=self.bcrypt_cost),
            password_changed_at=_utc_now(),
            first_name=first_name,
            last_name=last_name,
            is_active=True,
        )
        user_id = self.store.create_user(user)
        logger.info("Registered user id=%s", user_id)
        created = self.store.get_by_id(user_id)
        if created is None:
            raise UserNotFound("User not found after write.")
        return created

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def authenticate(self, username: str, password: str) -> User:
        """Return the user if username/password match an active account.

        Always runs bcrypt, whether or not the user exists.
        """
        user = self.store.get_by_username(username)
        if user is None:
            verify_password(password, self._dummy_hash)
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        if not user.is_active:
            raise AccountInactive()
        return user

    def login(self, username: str, password: str) -> tuple[str, User]:
        """Authenticate, stamp last_login and issue a token carrying the password epoch."""
        user = self.authenticate(username, password)
        self.store.update_last_login(user.id)
        token = self.tokens.issue_token(user.id, user.password_changed_at)
        logger.info("Login succeeded for user id=%s", user.id)
        return token, self.store.get_by_id(user.id) or user

    # ------------------------------------------------------------------
    # Password / profile
    # ------------------------------------------------------------------

    def get_profile(self, user_id: int) -> User:
        user = self.store.get_by_id(user_id)
        if user is None:
            raise UserNotFound()
        return user

    def change_password(self, user_id: int, current_password: str, new_password: str) -> User:
        """Replace the password and advance the epoch, invalidating older tokens."""
        user = self.get_profile(user_id)
        if not verify_password(current_password, user.password_hash):
            raise IncorrectPassword()

        validate_password(new_password)

        self.store.update_user(
            user_id,
            password_hash=hash_password(new_password, cost=self.bcrypt_cost),
            password_changed_at=next_password_epoch(user.password_changed_at),
        )
        logger.info("Password changed for user id=%s; earlier tokens are now stale", user_id)
        return self.get_profile(user_id)

    def update_profile(
        self,
        user_id: int,
        first_name: str | None = None,
        last_name: str | None = None,
        email: str | None = None,
    ) -> User:
        """Update the caller's profile fields. Only fields passed as non-None change."""
        user = self.get_profile(user_id)
        updates: dict = {}
        if first_name is not None:
            updates["first_name"] = first_name
        if last_name is not None:
            updates["last_name"] = last_name
        if email is not None:
            owner = self.store.get_by_email(email)
            if owner is not None and owner.id != user.id:
                raise DuplicateEmail()
            updates["email"] = email
        if updates:
            self.store.update_user(user_id, **updates)
        return self.get_profile(user_id)

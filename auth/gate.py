"""
auth/gate.py -- Per-request verification pipeline for bearer tokens.

One incoming Authorization header runs through these states, in order:

  1. missing header            -> reject MISSING_CREDENTIAL
  2. strip scheme, validate    -> reject INVALID_TOKEN (malformed/expired/bad signature)
  3. look up claimed user      -> reject ACCOUNT_MISSING
  4. account deactivated       -> reject ACCOUNT_INACTIVE
  5. token epoch < stored epoch -> reject STALE_TOKEN (password changed since issuance)
  6. accept                    -> Identity(user_id, password_epoch)

Step 5 is what invalidates every earlier token the moment a password
changes, with no revocation list: the token carries the epoch it was minted
under, and the store holds the current one.

Every rejection is terminal and never retried. A store failure during step 3
is NOT a rejection: it propagates unchanged so the caller answers 5xx. "Could
not verify" must never be reported as "verified invalid".

This module is framework-free; auth/dependencies.py binds it to FastAPI.
"""

from __future__ import annotations

import logging
from enum import Enum

from auth.models import Identity
from auth.store import UserStore
from auth.tokens import TokenError, TokenService
from core.errors import AuthenticationFailed

logger = logging.getLogger("blogapi.auth.gate")

BEARER_SCHEME = "bearer"


class RejectReason(str, Enum):
    MISSING_CREDENTIAL = "missing credential"
    INVALID_TOKEN = "invalid or expired token"
    ACCOUNT_MISSING = "account missing"
    ACCOUNT_INACTIVE = "account inactive"
    STALE_TOKEN = "stale token: password changed since issuance"


_REJECT_CODES = {
    RejectReason.MISSING_CREDENTIAL: "missing_credential",
    RejectReason.INVALID_TOKEN: "invalid_token",
    RejectReason.ACCOUNT_MISSING: "account_missing",
    RejectReason.ACCOUNT_INACTIVE: "account_inactive",
    RejectReason.STALE_TOKEN: "stale_token",
}


class AuthRejected(AuthenticationFailed):
    """A structured 401 produced by the gate. reason says which step failed."""

    def __init__(self, reason: RejectReason) -> None:
        super().__init__(reason.value)
        self.reason = reason
        self.code = _REJECT_CODES[reason]


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token part of an Authorization header value.

    "Bearer <token>" (scheme case-insensitive) yields <token>, which is empty
    when nothing follows the scheme. A bare value with no scheme is taken as
    the token itself. A blank or absent header yields None.
    """
    raw = (authorization or "").strip()
    if not raw:
        return None
    scheme, _, rest = raw.partition(" ")
    if scheme.lower() == BEARER_SCHEME:
        return rest.strip()
    return raw


class AuthGate:
    """Combine stateless token validation with one live account lookup.

    Usage:
        gate = AuthGate(tokens, user_store)
        identity = gate.authenticate(request.headers.get("Authorization"))
    """

    def __init__(self, tokens: TokenService, users: UserStore) -> None:
        self.tokens = tokens
        self.users = users

    def authenticate(self, authorization: str | None) -> Identity:
        """Run the pipeline on a raw header value. Raises AuthRejected on rejection."""
        token = extract_bearer_token(authorization)
        if token is None:
            raise self._reject(RejectReason.MISSING_CREDENTIAL)

        try:
            claims = self.tokens.validate_token(token)
        except TokenError as exc:
            logger.info("Token rejected: %s", type(exc).__name__)
            raise self._reject(RejectReason.INVALID_TOKEN) from exc

        # Store errors propagate; they are not a rejection.
        user = self.users.get_by_id(claims.user_id)
        if user is None:
            raise self._reject(RejectReason.ACCOUNT_MISSING, claims.user_id)
        if not user.is_active:
            raise self._reject(RejectReason.ACCOUNT_INACTIVE, claims.user_id)

        if claims.password_epoch < user.password_changed_at:
            raise self._reject(RejectReason.STALE_TOKEN, claims.user_id)

        return Identity(user_id=user.id, password_epoch=claims.password_epoch)

    @staticmethod
    def _reject(reason: RejectReason, user_id: int | None = None) -> AuthRejected:
        if user_id is None:
            logger.info("Auth rejected: %s", reason.value)
        else:
            logger.info("Auth rejected for user id=%s: %s", user_id, reason.value)
        return AuthRejected(reason)

"""
auth/tokens.py -- Stateless bearer tokens (JWT) with a password-epoch claim.

Security design decisions:
  JWT: python-jose, HS256 only. The algorithm is pinned on both sides: tokens
       are always signed with HS256, and a token whose header names any other
       algorithm (including "none" or an asymmetric one) is rejected before
       signature verification. That closes the algorithm-confusion forgery.

  Claims: sub / user_id (identity), pwd_changed_at (the user's password epoch
       at issuance, ISO 8601), iat, nbf, exp (iat + 24h by default), iss.
       The token is never stored server side.

  Epoch: validate_token() does NOT compare pwd_changed_at against the store.
       Token validity here is pure (signature + embedded claims); freshness
       against the live account is auth.gate.AuthGate's job.

  Key: injected into TokenService at construction (see api/main.py lifespan).
       Nothing in this module reads configuration on its own, and the key is
       fixed for the life of the service.

Failure taxonomy (all subclasses of core.errors.AuthenticationFailed except
NoSecretKey):
  TokenMalformed        -- not three base64url JSON segments
  TokenExpired          -- past exp, or before nbf
  TokenSignatureInvalid -- signature does not match the key
  TokenInvalid          -- wrong alg, wrong issuer, missing or ill-typed claims
  NoSecretKey           -- the service was built without a key (500)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from core.errors import AuthenticationFailed, InfrastructureError

ALGORITHM = "HS256"
DEFAULT_EXPIRE_SECONDS = 24 * 60 * 60
DEFAULT_ISSUER = "blog-api"
REQUIRED_CLAIMS = ("iat", "exp", "iss")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TokenError(AuthenticationFailed):
    code = "invalid_token"
    message = "Invalid or expired token."


class TokenMalformed(TokenError):
    pass


class TokenExpired(TokenError):
    pass


class TokenSignatureInvalid(TokenError):
    pass


class TokenInvalid(TokenError):
    pass


class NoSecretKey(InfrastructureError):
    code = "no_secret_key"


# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    password_epoch: datetime
    issued_at: datetime
    expires_at: datetime
    issuer: str


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class TokenService:
    """Mint and check bearer tokens without server-side session storage.

    Usage:
        tokens = TokenService(secret_key=settings.secret_key)
        token = tokens.issue_token(user.id, user.password_changed_at)
        claims = tokens.validate_token(token)
    """

    def __init__(
        self,
        secret_key: str,
        expire_seconds: int = DEFAULT_EXPIRE_SECONDS,
        issuer: str = DEFAULT_ISSUER,
    ) -> None:
        self._secret_key = secret_key or ""
        self.expire_seconds = expire_seconds
        self.issuer = issuer

    def _require_key(self) -> str:
        if not self._secret_key:
            raise NoSecretKey("Token signing key is not configured.")
        return self._secret_key

    def issue_token(self, user_id: int, password_epoch: datetime, now: datetime | None = None) -> str:
        """Return a signed token for user_id carrying password_epoch.

        now overrides the issuance instant; tests use it to mint tokens that
        are already expired.
        """
        key = self._require_key()
        issued_at = now or datetime.now(timezone.utc)
        iat = int(issued_at.timestamp())
        payload = {
            "sub": str(user_id),
            "user_id": user_id,
            "pwd_changed_at": password_epoch.isoformat(),
            "iat": iat,
            "nbf": iat,
            "exp": iat + self.expire_seconds,
            "iss": self.issuer,
        }
        return jwt.encode(payload, key, algorithm=ALGORITHM)

    def validate_token(self, token: str) -> TokenClaims:
        """Verify token's structure, algorithm, signature, issuer and lifetime.

        Returns the decoded claims. Raises a TokenError subclass on any
        failure and NoSecretKey when the service has no key.
        """
        key = self._require_key()
        raw = (token or "").strip()
        if not raw:
            raise TokenMalformed()

        try:
            header = jwt.get_unverified_header(raw)
            jwt.get_unverified_claims(raw)
        except JWTError as exc:
            raise TokenMalformed() from exc

        if header.get("alg") != ALGORITHM:
            raise TokenInvalid(f"Unexpected signing algorithm: {header.get('alg')!r}")

        try:
            payload = jwt.decode(
                raw,
                key,
                algorithms=[ALGORITHM],
                issuer=self.issuer,
                # nbf is checked below so it maps onto TokenExpired rather than
                # the generic claims error. Claim presence is checked after the
                # signature, since jose reports a missing claim as a bare JWTError.
                options={"verify_nbf": False},
            )
        except ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except JWTClaimsError as exc:
            raise TokenInvalid(str(exc)) from exc
        except JWTError as exc:
            raise TokenSignatureInvalid() from exc

        for claim in REQUIRED_CLAIMS:
            if claim not in payload:
                raise TokenInvalid(f"Token is missing the {claim} claim.")

        nbf = payload.get("nbf")
        if nbf is not None and datetime.now(timezone.utc).timestamp() < nbf:
            raise TokenExpired("Token is not valid yet.")

        return _claims_from_payload(payload)


def _claims_from_payload(payload: dict) -> TokenClaims:
    user_id = payload.get("user_id")
    if not isinstance(user_id, int) or isinstance(user_id, bool) or payload.get("sub") != str(user_id):
        raise TokenInvalid("Token subject is missing or inconsistent.")

    raw_epoch = payload.get("pwd_changed_at")
    if not isinstance(raw_epoch, str):
        raise TokenInvalid("Token has no password epoch.")
    try:
        epoch = datetime.fromisoformat(raw_epoch)
    except ValueError as exc:
        raise TokenInvalid("Token password epoch is not a timestamp.") from exc
    if epoch.tzinfo is None:
        epoch = epoch.replace(tzinfo=timezone.utc)

    issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
    return TokenClaims(
        user_id=user_id,
        password_epoch=epoch,
        issued_at=issued_at,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        issuer=payload["iss"],
    )

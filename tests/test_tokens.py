"""Unit tests for auth/tokens.py -- bearer token issuance and validation.

Covers:
- issue then validate returns the same user id and password epoch
- tokens past their 24h lifetime fail with TokenExpired
- malformed input fails with TokenMalformed
- a token signed with another key fails with TokenSignatureInvalid
- unexpected algorithms (including "none"), a wrong issuer and missing claims
  fail with TokenInvalid
- a service without a signing key raises NoSecretKey
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.tokens import (
    ALGORITHM,
    DEFAULT_EXPIRE_SECONDS,
    NoSecretKey,
    TokenError,
    TokenExpired,
    TokenInvalid,
    TokenMalformed,
    TokenService,
    TokenSignatureInvalid,
)

SECRET = "unit-test-secret-key-with-32-plus-chars"
EPOCH = datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(SECRET)


def _payload(**overrides) -> dict:
    now = int(datetime.now(timezone.utc).timestamp())
    payload = {
        "sub": "7",
        "user_id": 7,
        "pwd_changed_at": EPOCH.isoformat(),
        "iat": now,
        "nbf": now,
        "exp": now + 3600,
        "iss": "blog-api",
    }
    payload.update(overrides)
    return payload


class TestIssueAndValidate:
    def test_round_trip_preserves_identity(self, tokens: TokenService) -> None:
        claims = tokens.validate_token(tokens.issue_token(7, EPOCH))
        assert claims.user_id == 7
        assert claims.password_epoch == EPOCH, f"Epoch drifted: {claims.password_epoch!r}"
        assert claims.issuer == "blog-api"

    def test_default_lifetime_is_24_hours(self, tokens: TokenService) -> None:
        claims = tokens.validate_token(tokens.issue_token(1, EPOCH))
        assert DEFAULT_EXPIRE_SECONDS == 24 * 60 * 60
        assert claims.expires_at - claims.issued_at == timedelta(hours=24)

    def test_token_is_hs256(self, tokens: TokenService) -> None:
        header = jwt.get_unverified_header(tokens.issue_token(1, EPOCH))
        assert header["alg"] == ALGORITHM == "HS256"

    def test_epoch_survives_as_timezone_aware(self, tokens: TokenService) -> None:
        claims = tokens.validate_token(tokens.issue_token(3, EPOCH))
        assert claims.password_epoch.tzinfo is not None


class TestExpiry:
    def test_token_past_lifetime_is_expired(self, tokens: TokenService) -> None:
        issued = datetime.now(timezone.utc) - timedelta(hours=24, minutes=1)
        token = tokens.issue_token(7, EPOCH, now=issued)
        with pytest.raises(TokenExpired):
            tokens.validate_token(token)

    def test_token_inside_lifetime_is_valid(self, tokens: TokenService) -> None:
        issued = datetime.now(timezone.utc) - timedelta(hours=23)
        assert tokens.validate_token(tokens.issue_token(7, EPOCH, now=issued)).user_id == 7

    def test_short_lifetime_service(self) -> None:
        service = TokenService(SECRET, expire_seconds=60)
        issued = datetime.now(timezone.utc) - timedelta(minutes=2)
        with pytest.raises(TokenExpired):
            service.validate_token(service.issue_token(1, EPOCH, now=issued))

    def test_not_yet_valid_token_is_rejected(self, tokens: TokenService) -> None:
        issued = datetime.now(timezone.utc) + timedelta(hours=1)
        with pytest.raises(TokenError):
            tokens.validate_token(tokens.issue_token(7, EPOCH, now=issued))


class TestMalformedAndTampered:
    @pytest.mark.parametrize("raw", ["", "   ", "not-a-token", "a.b", "x.y.z"])
    def test_malformed(self, tokens: TokenService, raw: str) -> None:
        with pytest.raises(TokenMalformed):
            tokens.validate_token(raw)

    def test_wrong_key_is_signature_invalid(self, tokens: TokenService) -> None:
        forged = TokenService("another-secret-key-also-32-chars-long").issue_token(7, EPOCH)
        with pytest.raises(TokenSignatureInvalid):
            tokens.validate_token(forged)

    def test_tampered_payload_is_signature_invalid(self, tokens: TokenService) -> None:
        header, _payload_part, signature = tokens.issue_token(7, EPOCH).split(".")
        other_payload = tokens.issue_token(8, EPOCH).split(".")[1]
        with pytest.raises(TokenSignatureInvalid):
            tokens.validate_token(".".join([header, other_payload, signature]))

    def test_other_hmac_algorithm_rejected(self, tokens: TokenService) -> None:
        token = jwt.encode(_payload(), SECRET, algorithm="HS512")
        with pytest.raises(TokenInvalid):
            tokens.validate_token(token)

    def test_alg_none_rejected(self, tokens: TokenService) -> None:
        """An unsigned token claiming alg=none must never be accepted."""
        import base64
        import json

        def _b64(data: dict) -> str:
            return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()

        unsigned = f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64(_payload())}."
        with pytest.raises(TokenError):
            tokens.validate_token(unsigned)

    def test_wrong_issuer_rejected(self, tokens: TokenService) -> None:
        token = jwt.encode(_payload(iss="someone-else"), SECRET, algorithm=ALGORITHM)
        with pytest.raises(TokenInvalid):
            tokens.validate_token(token)

    def test_missing_epoch_rejected(self, tokens: TokenService) -> None:
        payload = _payload()
        del payload["pwd_changed_at"]
        with pytest.raises(TokenInvalid):
            tokens.validate_token(jwt.encode(payload, SECRET, algorithm=ALGORITHM))

    @pytest.mark.parametrize("claim", ["iat", "exp", "iss"])
    def test_missing_required_claim_rejected(self, tokens: TokenService, claim: str) -> None:
        """A correctly signed token without a required claim is invalid, not forged."""
        payload = _payload()
        del payload[claim]
        with pytest.raises(TokenInvalid):
            tokens.validate_token(jwt.encode(payload, SECRET, algorithm=ALGORITHM))

    def test_missing_iat_with_wrong_key_is_signature_invalid(self, tokens: TokenService) -> None:
        payload = _payload()
        del payload["iat"]
        forged = jwt.encode(payload, "another-secret-key-also-32-chars-long", algorithm=ALGORITHM)
        with pytest.raises(TokenSignatureInvalid):
            tokens.validate_token(forged)

    def test_inconsistent_subject_rejected(self, tokens: TokenService) -> None:
        token = jwt.encode(_payload(sub="8"), SECRET, algorithm=ALGORITHM)
        with pytest.raises(TokenInvalid):
            tokens.validate_token(token)


class TestMissingKey:
    def test_issue_without_key(self) -> None:
        with pytest.raises(NoSecretKey):
            TokenService("").issue_token(1, EPOCH)

    def test_validate_without_key(self, tokens: TokenService) -> None:
        token = tokens.issue_token(1, EPOCH)
        with pytest.raises(NoSecretKey):
            TokenService("").validate_token(token)

    def test_no_secret_key_is_not_a_token_error(self) -> None:
        """A missing key is a server fault, so it must not look like a bad credential."""
        assert not issubclass(NoSecretKey, TokenError)

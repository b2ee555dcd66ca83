"""Unit tests for auth/hashing.py -- bcrypt hash and verify.

Covers:
- hash then verify succeeds; a different secret fails
- two hashes of the same secret differ (random salt) and both verify
- the cost factor is encoded in the digest
- out-of-range cost raises InvalidCost
- a bcrypt or entropy failure raises HashingFailed (500), never an empty digest
- malformed or empty digests count as a mismatch, never an exception
"""

import pytest

from auth.hashing import MAX_COST, MIN_COST, HashingFailed, InvalidCost, hash_password, verify_password


class TestHashPassword:
    def test_hash_then_verify(self) -> None:
        digest = hash_password("correct horse battery", cost=4)
        assert verify_password("correct horse battery", digest)

    def test_other_secret_does_not_verify(self) -> None:
        digest = hash_password("correct horse battery", cost=4)
        assert not verify_password("correct horse battery!", digest)

    def test_salt_makes_each_digest_unique(self) -> None:
        """Hashing the same secret twice yields different digests that both verify."""
        first = hash_password("same-secret", cost=4)
        second = hash_password("same-secret", cost=4)
        assert first != second, "Expected a fresh salt per call"
        assert verify_password("same-secret", first)
        assert verify_password("same-secret", second)

    def test_cost_is_encoded_in_digest(self) -> None:
        digest = hash_password("some-password", cost=5)
        assert digest.startswith("$2b$05$"), f"Unexpected digest prefix: {digest[:7]}"

    def test_digest_never_contains_plaintext(self) -> None:
        assert "plaintext-secret" not in hash_password("plaintext-secret", cost=4)

    @pytest.mark.parametrize("cost", [MIN_COST - 1, MAX_COST + 1, 0, -1])
    def test_cost_out_of_range_rejected(self, cost: int) -> None:
        with pytest.raises(InvalidCost):
            hash_password("some-password", cost=cost)


class TestVerifyPassword:
    def test_empty_digest_is_mismatch(self) -> None:
        assert verify_password("anything", "") is False

    def test_malformed_digest_is_mismatch(self) -> None:
        """A digest bcrypt cannot parse is treated as a wrong password, not a crash."""
        assert verify_password("anything", "not-a-bcrypt-digest") is False

    def test_unicode_secret_round_trip(self) -> None:
        digest = hash_password("pässwörd-ünïcode", cost=4)
        assert verify_password("pässwörd-ünïcode", digest)
        assert not verify_password("passwort-unicode", digest)


class TestHashingFailure:
    @pytest.mark.parametrize(
        "error", [OSError("entropy source unavailable"), ValueError("bcrypt refused input")]
    )
    def test_hashpw_failure_raises_hashing_failed(self, monkeypatch, error: Exception) -> None:
        def _fail(*_args, **_kwargs):
            raise error

        monkeypatch.setattr("auth.hashing.bcrypt.hashpw", _fail)
        with pytest.raises(HashingFailed) as excinfo:
            hash_password("correct horse", cost=MIN_COST)
        assert excinfo.value.status_code == 500
        assert excinfo.value.__cause__ is error

    def test_salt_failure_raises_hashing_failed(self, monkeypatch) -> None:
        def _no_entropy(*_args, **_kwargs):
            raise OSError("getrandom failed")

        monkeypatch.setattr("auth.hashing.bcrypt.gensalt", _no_entropy)
        with pytest.raises(HashingFailed):
            hash_password("correct horse", cost=MIN_COST)

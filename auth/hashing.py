"""
auth/hashing.py -- One-way password hashing with bcrypt.

bcrypt is salted and adaptive: the cost factor is log2 of the number of key
expansion rounds, so each +1 doubles the work an attacker with a stolen
digest has to do per guess. bcrypt.checkpw compares digests in constant time.

bcrypt is used directly rather than through passlib: passlib's wrap-bug
detection hashes a password longer than 72 bytes, which bcrypt 4.x rejects.
"""

from __future__ import annotations

import logging

import bcrypt

from core.errors import InfrastructureError

logger = logging.getLogger("blogapi.auth.hashing")

MIN_COST = 4
MAX_COST = 31
DEFAULT_COST = 10


class InvalidCost(ValueError):
    """Raised for a bcrypt cost outside MIN_COST..MAX_COST. A configuration bug, not user input."""


class HashingFailed(InfrastructureError):
    code = "hashing_failed"
    message = "Password could not be processed."


def hash_password(plain: str, cost: int = DEFAULT_COST) -> str:
    """Return a bcrypt digest of plain at the given cost.

    Raises InvalidCost for an out-of-range cost and HashingFailed when bcrypt
    or the entropy source fails. Never returns an empty digest.
    """
    if not MIN_COST <= cost <= MAX_COST:
        raise InvalidCost(f"bcrypt cost must be between {MIN_COST} and {MAX_COST}, got {cost}")
    try:
        digest = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=cost))
    except (ValueError, OSError) as exc:
        logger.error("bcrypt hashing failed: %s", type(exc).__name__)
        raise HashingFailed() from exc
    return digest.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if plain matches the bcrypt digest.

    A malformed digest or a secret bcrypt refuses counts as a mismatch.
    """
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False

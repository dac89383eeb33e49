"""
Cryptographic helpers — client secret hashing and comparison.

Uses argon2 for secrets at rest (via argon2-cffi) and a constant-time
comparison for schemes that store the raw secret.
"""

from __future__ import annotations

import hmac

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_secret_hasher = PasswordHasher()


def hash_secret(plain_secret: str) -> str:
    """Hash *plain_secret* with argon2id.

    Returns:
        Argon2 hash string (includes algorithm parameters and salt).
    """
    return _secret_hasher.hash(plain_secret)


def verify_secret(plain_secret: str, secret_hash: str) -> bool:
    """Verify *plain_secret* against an argon2 *secret_hash*.

    Returns:
        ``True`` if the secret matches, ``False`` for a wrong secret or a
        malformed hash.
    """
    try:
        return _secret_hasher.verify(secret_hash, plain_secret)
    except (VerificationError, InvalidHashError):
        return False


def constant_time_equals(left: str, right: str) -> bool:
    """Compare two strings without leaking the mismatch position via timing."""
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))

"""
===============================================================================
CRC CARD: identity/passwords.py
===============================================================================

Module:
    Password hashing (Argon2)

Responsibilities:
    - Hash plaintext passwords with a slow, salted one-way function.
    - Verify a plaintext against a stored hash (constant-time in argon2-cffi).

Collaborators:
    - application/user_business.py: create/update hash, authenticate verifies.
    - domain/errors.PasswordHashError: hashing failures.

Design decisions:
    - Cost parameters are argon2-cffi's defaults (RFC 9106 low-memory profile),
      fixed in PASSWORD_HASHER. They are not tunable per call.
    - Hashes are never compared with ==; only PasswordHasher.verify() decides.
===============================================================================
"""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError

from ..domain.errors import PasswordHashError

PASSWORD_HASHER: PasswordHasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash `password` with Argon2id. Raises PasswordHashError on failure."""
    try:
        return PASSWORD_HASHER.hash(password)
    except (HashingError, TypeError) as exc:
        raise PasswordHashError(f"hash password: {exc}", original_error=exc) from exc


def verify_password(password: str, password_hash: str) -> bool:
    """True when `password` matches `password_hash`. Malformed hashes never match."""
    try:
        return PASSWORD_HASHER.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False

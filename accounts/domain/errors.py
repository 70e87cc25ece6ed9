"""
===============================================================================
CRC CARD: domain/errors.py
===============================================================================

Component:
  User domain error kinds

Responsibilities:
  - Name every failure kind a caller of the user business may need to tell apart.
  - Keep messages generic where leaking detail would be a security problem
    (authentication).

Collaborators:
  - crosscutting/exceptions.AccountsError (base: error_code + error_id)
  - UserStorer implementations raise UserNotFoundError / UniqueEmailError
  - application/delegate.Delegate raises DelegateCallError
===============================================================================
"""

from __future__ import annotations

from ..crosscutting.exceptions import AccountsError


class UserNotFoundError(AccountsError):
    """The requested user does not exist."""

    error_code: str = "USER_NOT_FOUND"


class UniqueEmailError(AccountsError):
    """Email already in use by another user (raised by the storage port)."""

    error_code: str = "EMAIL_NOT_UNIQUE"


class AuthenticationFailureError(AccountsError):
    """
    Credentials rejected.

    Same kind for "unknown email" and "wrong password".
    """

    error_code: str = "AUTHENTICATION_FAILED"


class PasswordHashError(AccountsError):
    """The hash function rejected the input. Internal, not user guidance."""

    error_code: str = "PASSWORD_HASH_FAILED"


class DelegateCallError(AccountsError):
    """A subscribed domain failed while handling a delegated event."""

    error_code: str = "DELEGATE_CALL_FAILED"

"""
===============================================================================
MODULE: Typed errors of the accounts core
===============================================================================

Goals
-----
Consistent internal errors with:
- a stable error_code
- an error_id to correlate with logs
- a "human" message (no secrets, no plaintext passwords)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Component:
  AccountsError + subclasses

Responsibilities:
  - Standardize errors that the transport layer later maps to responses
  - Keep the error kind stable while callers add operation context

Collaborators:
  - domain/errors.py (user domain kinds)
  - application/user_business.py (adds operation prefixes)
===============================================================================
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True)
class ErrorResponse:
    """Minimal shape for reporting an error consistently."""

    error_code: str
    message: str
    error_id: str

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "error_id": self.error_id,
        }


class AccountsError(Exception):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Class:
      AccountsError

    Responsibilities:
      - Base for every error raised by the accounts package
      - Provide error_code + error_id + message

    Collaborators:
      - Transport layer exception handlers (out of scope)
    ----------------------------------------------------------------------------
    """

    error_code: str = "ACCOUNTS_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)

    def with_context(self, prefix: str) -> "AccountsError":
        """
        Return a copy of this error, same class and error_id, with the message
        prefixed by `prefix`. Raise it `from` the original to keep the chain.
        """
        wrapped = copy.copy(self)
        wrapped.message = f"{prefix}: {self.message}"
        wrapped.original_error = self
        wrapped.args = (wrapped.message,)
        return wrapped

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.error_code, message=self.message, error_id=self.error_id
        )


class StorageError(AccountsError):
    """Any storage failure without a more specific kind (connection, timeout, ...)."""

    error_code: str = "STORAGE_ERROR"

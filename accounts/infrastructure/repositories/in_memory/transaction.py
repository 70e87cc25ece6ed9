"""
============================================================
CRC CARD: infrastructure/repositories/in_memory/transaction.py
============================================================
Class: InMemoryTransaction

Responsibilities:
  - Implement CommitRollbacker for the in-memory store.
  - Keep an undo log of the writes made through tx-bound stores.
  - rollback(): undo those writes in reverse order.
  - commit(): keep them and close the transaction.

Collaborators:
  - InMemoryUserStore (records undo actions while bound to this tx)

Constraints / Notes:
  - Writes are visible immediately (read-uncommitted). Enough for tests and
    local development; isolation is the job of a real database.
  - A closed transaction rejects further writes (TransactionClosedError).
============================================================
"""

from __future__ import annotations

from threading import Lock
from typing import Callable, List

from ....crosscutting.exceptions import StorageError


class TransactionClosedError(StorageError):
    """The transaction was already committed or rolled back."""

    error_code: str = "TRANSACTION_CLOSED"


class InMemoryTransaction:
    def __init__(self) -> None:
        self._lock = Lock()
        self._undo: List[Callable[[], None]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def record_undo(self, action: Callable[[], None]) -> None:
        with self._lock:
            if self._closed:
                raise TransactionClosedError("transaction already closed")
            self._undo.append(action)

    def commit(self) -> None:
        with self._lock:
            self._ensure_open()
            self._undo.clear()
            self._closed = True

    def rollback(self) -> None:
        with self._lock:
            self._ensure_open()
            undo, self._undo = self._undo, []
            self._closed = True

        for action in reversed(undo):
            action()

    def _ensure_open(self) -> None:
        if self._closed:
            raise TransactionClosedError("transaction already closed")

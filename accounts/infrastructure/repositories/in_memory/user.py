"""
============================================================
CRC CARD: infrastructure/repositories/in_memory/user.py
============================================================
Class: InMemoryUserStore

Responsibilities:
  - Store users in memory (tests / local dev).
  - Implement the UserStorer port: CRUD, filtered/ordered/paged listing,
    count, lookup by id and email.
  - Enforce email uniqueness (case-insensitive), like the SQL unique index.
  - Bind to an InMemoryTransaction via new_with_tx(): writes made through the
    bound store are undone by tx.rollback().

Collaborators:
  - domain.entities.User, domain.query (QueryFilter / OrderBy / Page)
  - domain.repositories.UserStorer (contract implemented here)
  - domain.errors: UserNotFoundError, UniqueEmailError
  - InMemoryTransaction

Constraints / Notes:
  - Thread-safe: every access to the table happens under its Lock.
  - Stores built with new_with_tx() share the table with the original store.
  - User is frozen, so rows can be returned without defensive copies.
============================================================
"""

from __future__ import annotations

from threading import Lock
from typing import Any, Callable, Dict, Iterable, List, Optional
from uuid import UUID

from ....crosscutting.exceptions import StorageError
from ....domain.entities import User
from ....domain.errors import UniqueEmailError, UserNotFoundError
from ....domain.query import (
    ORDER_BY_EMAIL,
    ORDER_BY_ENABLED,
    ORDER_BY_ID,
    ORDER_BY_NAME,
    ORDER_BY_ROLES,
    Direction,
    OrderBy,
    Page,
    QueryFilter,
)
from ....domain.repositories import CommitRollbacker
from .transaction import InMemoryTransaction, TransactionClosedError

_SORT_KEYS: Dict[str, Callable[[User], Any]] = {
    ORDER_BY_ID: lambda u: str(u.id),
    ORDER_BY_NAME: lambda u: u.name.lower(),
    ORDER_BY_EMAIL: lambda u: u.email.lower(),
    ORDER_BY_ROLES: lambda u: tuple(r.value for r in u.roles),
    ORDER_BY_ENABLED: lambda u: u.enabled,
}


class _UserTable:
    """The in-memory "table": rows by id, guarded by one lock."""

    def __init__(self) -> None:
        self.lock = Lock()
        self.rows: Dict[UUID, User] = {}


class InMemoryUserStore:
    def __init__(
        self,
        *,
        _table: Optional[_UserTable] = None,
        _tx: Optional[InMemoryTransaction] = None,
    ) -> None:
        self._table = _table or _UserTable()
        self._tx = _tx

    # =========================================================
    # Transactions
    # =========================================================
    def begin(self) -> InMemoryTransaction:
        """Start a transaction usable with new_with_tx()."""
        return InMemoryTransaction()

    def new_with_tx(self, tx: CommitRollbacker) -> "InMemoryUserStore":
        if not isinstance(tx, InMemoryTransaction):
            raise StorageError(
                f"unsupported transaction type {type(tx).__name__}"
            )
        return InMemoryUserStore(_table=self._table, _tx=tx)

    # =========================================================
    # Writes
    # =========================================================
    def create(self, user: User) -> None:
        self._ensure_tx_open()
        rows = self._table.rows

        with self._table.lock:
            if user.id in rows:
                raise StorageError(f"user id {user.id} already exists")
            self._ensure_unique_email(user)
            rows[user.id] = user

        self._record_undo(user.id, None)

    def update(self, user: User) -> None:
        self._ensure_tx_open()
        rows = self._table.rows

        with self._table.lock:
            previous = rows.get(user.id)
            if previous is None:
                raise UserNotFoundError("user not found")
            self._ensure_unique_email(user)
            rows[user.id] = user

        self._record_undo(user.id, previous)

    def delete(self, user: User) -> None:
        """Deleting a missing user is a no-op, like DELETE ... WHERE id = ?."""
        self._ensure_tx_open()

        with self._table.lock:
            previous = self._table.rows.pop(user.id, None)

        if previous is not None:
            self._record_undo(user.id, previous)

    # =========================================================
    # Reads
    # =========================================================
    def query(
        self, filter: QueryFilter, order_by: OrderBy, page: Page
    ) -> List[User]:
        matches = self._filtered(filter)

        key = _SORT_KEYS.get(order_by.field)
        if key is None:
            raise StorageError(f"field {order_by.field!r} is not orderable")

        ordered = sorted(
            matches, key=key, reverse=order_by.direction == Direction.DESC
        )
        return ordered[page.offset : page.offset + page.rows_per_page]

    def count(self, filter: QueryFilter) -> int:
        return len(self._filtered(filter))

    def query_by_id(self, user_id: UUID) -> User:
        with self._table.lock:
            user = self._table.rows.get(user_id)

        if user is None:
            raise UserNotFoundError("user not found")
        return user

    def query_by_email(self, email: str) -> User:
        wanted = self._normalize_email(email)

        with self._table.lock:
            for user in self._table.rows.values():
                if self._normalize_email(user.email) == wanted:
                    return user

        raise UserNotFoundError("user not found")

    # =========================================================
    # Internal helpers
    # =========================================================
    @staticmethod
    def _normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    def _ensure_unique_email(self, user: User) -> None:
        """Caller must hold the table lock."""
        email = self._normalize_email(user.email)
        for other in self._table.rows.values():
            if other.id != user.id and self._normalize_email(other.email) == email:
                raise UniqueEmailError("email is not unique")

    def _ensure_tx_open(self) -> None:
        if self._tx is not None and self._tx.closed:
            raise TransactionClosedError("transaction already closed")

    def _record_undo(self, user_id: UUID, previous: Optional[User]) -> None:
        if self._tx is None:
            return

        table = self._table

        def undo() -> None:
            with table.lock:
                if previous is None:
                    table.rows.pop(user_id, None)
                else:
                    table.rows[user_id] = previous

        self._tx.record_undo(undo)

    def _filtered(self, filter: QueryFilter) -> List[User]:
        with self._table.lock:
            values: Iterable[User] = list(self._table.rows.values())

        name = (filter.name or "").lower()
        email = self._normalize_email(filter.email) if filter.email else ""

        def predicate(u: User) -> bool:
            if filter.id is not None and u.id != filter.id:
                return False
            if name and name not in u.name.lower():
                return False
            if email and self._normalize_email(u.email) != email:
                return False
            if (
                filter.start_created_date is not None
                and u.date_created < filter.start_created_date
            ):
                return False
            if (
                filter.end_created_date is not None
                and u.date_created > filter.end_created_date
            ):
                return False
            return True

        return [u for u in values if predicate(u)]

"""
CRC: domain/repositories.py

Name
- User storage port (Protocols)

Responsibilities
- Define the persistence contract the user business depends on.
- Define the transaction handle contract used by new_with_tx().
- Keep the core independent from any concrete persistence technology.

Collaborators
- domain.entities: User
- domain.query: QueryFilter, OrderBy, Page
- infrastructure.repositories: in-memory and caching implementations

Constraints
- Pure interfaces only: no side effects, no infrastructure imports.
- Lookups raise UserNotFoundError instead of returning None.
- The storer owns the email uniqueness rule and raises UniqueEmailError.

Notes
- typing.Protocol for structural subtyping: fakes need no inheritance.
"""

from __future__ import annotations

from typing import List, Protocol
from uuid import UUID

from .entities import User
from .query import OrderBy, Page, QueryFilter


class CommitRollbacker(Protocol):
    """R: Unit-of-work handle owned by the caller. The core never calls it."""

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


class UserStorer(Protocol):
    """
    R: Interface for user persistence.

    Implementations must provide:
      - CRUD on User rows
      - Filtered, ordered, paged listing and counting
      - Lookup by id / email
      - Rebinding to a caller-managed transaction
    """

    def new_with_tx(self, tx: CommitRollbacker) -> "UserStorer":
        """R: Return a new storer bound to `tx`; the original is left untouched."""
        ...

    def create(self, user: User) -> None:
        """R: Insert. Raises UniqueEmailError if the email is taken."""
        ...

    def update(self, user: User) -> None:
        """R: Replace the row with the same id. Raises UniqueEmailError."""
        ...

    def delete(self, user: User) -> None:
        ...

    def query(
        self, filter: QueryFilter, order_by: OrderBy, page: Page
    ) -> List[User]:
        ...

    def count(self, filter: QueryFilter) -> int:
        ...

    def query_by_id(self, user_id: UUID) -> User:
        """R: Raises UserNotFoundError if absent."""
        ...

    def query_by_email(self, email: str) -> User:
        """R: Raises UserNotFoundError if absent."""
        ...

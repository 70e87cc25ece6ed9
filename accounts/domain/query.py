"""
CRC: domain/query.py

Name
- Query value objects (filter, ordering, paging)

Responsibilities
- Carry the predicates, ordering and page window of a user listing.
- Parse the transport representations ("name,DESC", page/rows numbers).

Collaborators
- application/user_business.py: passes these through untouched.
- infrastructure/repositories: interpret them (in-memory store).

Constraints
- The business core never inspects these values.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

MAX_ROWS_PER_PAGE = 100

ORDER_BY_ID = "id"
ORDER_BY_NAME = "name"
ORDER_BY_EMAIL = "email"
ORDER_BY_ROLES = "roles"
ORDER_BY_ENABLED = "enabled"

ORDERABLE_FIELDS = frozenset(
    {ORDER_BY_ID, ORDER_BY_NAME, ORDER_BY_EMAIL, ORDER_BY_ROLES, ORDER_BY_ENABLED}
)


@dataclass(frozen=True, slots=True)
class QueryFilter:
    """Optional predicates; None means "do not filter on this field"."""

    id: Optional[UUID] = None
    name: Optional[str] = None
    email: Optional[str] = None
    start_created_date: Optional[datetime] = None
    end_created_date: Optional[datetime] = None


class Direction(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True, slots=True)
class OrderBy:
    field: str
    direction: Direction = Direction.ASC


DEFAULT_ORDER_BY = OrderBy(field=ORDER_BY_ID, direction=Direction.ASC)


def parse_order_by(value: str | None, default: OrderBy = DEFAULT_ORDER_BY) -> OrderBy:
    """
    Parse "field" or "field,direction".

    Empty input returns `default`. Unknown fields or directions raise ValueError.
    """
    raw = (value or "").strip()
    if not raw:
        return default

    field, _, direction = raw.partition(",")
    field = field.strip().lower()
    if field not in ORDERABLE_FIELDS:
        raise ValueError(f"unknown order field {field!r}")

    direction = direction.strip().upper() or Direction.ASC.value
    try:
        return OrderBy(field=field, direction=Direction(direction))
    except ValueError as exc:
        raise ValueError(f"unknown order direction {direction!r}") from exc


@dataclass(frozen=True, slots=True)
class Page:
    """1-based page window."""

    number: int = 1
    rows_per_page: int = 10

    @classmethod
    def parse(cls, number: int | str = 1, rows_per_page: int | str = 10) -> "Page":
        try:
            n = int(number)
            rows = int(rows_per_page)
        except (TypeError, ValueError) as exc:
            raise ValueError("page and rows must be integers") from exc

        if n < 1:
            raise ValueError("page value too small, must be larger than 0")
        if rows < 1:
            raise ValueError("rows value too small, must be larger than 0")
        if rows > MAX_ROWS_PER_PAGE:
            raise ValueError(
                f"rows value too large, must be less than or equal to {MAX_ROWS_PER_PAGE}"
            )
        return cls(number=n, rows_per_page=rows)

    @property
    def offset(self) -> int:
        return (self.number - 1) * self.rows_per_page

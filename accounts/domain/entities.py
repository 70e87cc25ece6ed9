"""
===============================================================================
CRC CARD: domain/entities.py
===============================================================================

Module:
    User domain models

Responsibilities:
    - Define the persisted account record (User).
    - Define the creation request (NewUser) and the partial update (UpdateUser).
    - Provide value parsers (role, name, email) for the layer that builds requests.

Collaborators:
    - application/user_business.py: creates, merges and returns User values.
    - domain/repositories.py: UserStorer persists User values.
    - infrastructure/repositories: map storage rows <-> User.

Notes:
    - Pure data shapes. No persistence, no hashing.
    - User is frozen: every change produces a new value (dataclasses.replace).
    - UpdateUser uses None as "absent". An empty string is a real value.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional
from uuid import UUID

from email_validator import EmailNotValidError, validate_email

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 100


class Role(str, Enum):
    """Role tags used by authorization layers above the core."""

    ADMIN = "ADMIN"
    USER = "USER"


@dataclass(frozen=True, slots=True)
class User:
    """Persisted user account. password_hash is never the plaintext."""

    id: UUID
    name: str
    email: str
    password_hash: str
    roles: tuple[Role, ...]
    department: str
    enabled: bool
    date_created: datetime
    date_updated: datetime


@dataclass(frozen=True, slots=True)
class NewUser:
    """Creation request. The core assigns id, timestamps and enabled."""

    name: str
    email: str
    password: str
    roles: tuple[Role, ...] = (Role.USER,)
    department: str = ""


@dataclass(frozen=True, slots=True)
class UpdateUser:
    """Partial update: fields left as None keep their current value."""

    name: Optional[str] = None
    email: Optional[str] = None
    roles: Optional[tuple[Role, ...]] = None
    department: Optional[str] = None
    password: Optional[str] = None
    enabled: Optional[bool] = None


# =============================================================================
# Value parsers (used by the request-building layer and by tests)
# =============================================================================


def parse_role(value: str) -> Role:
    """Parse a role tag (case-insensitive). Raises ValueError if unknown."""
    try:
        return Role((value or "").strip().upper())
    except ValueError as exc:
        raise ValueError(f"invalid role {value!r}") from exc


def parse_roles(values: Iterable[str]) -> tuple[Role, ...]:
    return tuple(parse_role(v) for v in values)


def parse_name(value: str) -> str:
    """Trim and check the display name length."""
    name = (value or "").strip()
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise ValueError(
            f"name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
        )
    return name


def parse_email(value: str) -> str:
    """Validate an email address and return its normalized form (no DNS checks)."""
    try:
        result = validate_email((value or "").strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(f"invalid email {value!r}: {exc}") from exc
    return result.normalized

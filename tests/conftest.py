"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Provide reusable fixtures for the user business and its ports
  - Keep tests deterministic (fake clock, no .env file)
  - Provide a NewUser factory

Collaborators:
  - pytest: Test framework
  - accounts.application: new_business, Delegate
  - accounts.infrastructure.repositories.in_memory: InMemoryUserStore

Notes:
  - Fixtures are function scoped for per-test isolation
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List
from uuid import UUID, uuid4

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("APP_ENV", "test")

from accounts.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None
app_config.get_settings.cache_clear()

from accounts.application.delegate import Delegate  # noqa: E402
from accounts.application.user_business import Business, new_business  # noqa: E402
from accounts.domain.entities import NewUser, Role  # noqa: E402
from accounts.domain.events import (  # noqa: E402
    ACTION_DELETED,
    DOMAIN_NAME,
    ActionDeletedParams,
    DelegateData,
)
from accounts.infrastructure.repositories.in_memory import (  # noqa: E402
    InMemoryUserStore,
)


class FakeClock:
    """Returns a strictly increasing UTC time, one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


# ============================================================================
# Ports
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def delegate() -> Delegate:
    return Delegate()


@pytest.fixture
def deleted_user_ids(delegate: Delegate) -> List[UUID]:
    """R: Subscribe to the "user deleted" action and collect the ids."""
    received: List[UUID] = []

    def on_deleted(data: DelegateData) -> None:
        received.append(ActionDeletedParams.from_data(data).user_id)

    delegate.register(DOMAIN_NAME, ACTION_DELETED, on_deleted)
    return received


# ============================================================================
# Business
# ============================================================================


@pytest.fixture
def business(
    store: InMemoryUserStore, delegate: Delegate, clock: FakeClock
) -> Business:
    return new_business(store, delegate, clock=clock)


@pytest.fixture
def actor_id() -> UUID:
    return uuid4()


@pytest.fixture
def new_user() -> Callable[..., NewUser]:
    """R: Factory for NewUser values with unique emails."""

    def _factory(**overrides) -> NewUser:
        data = {
            "name": "Test User",
            "email": f"user-{uuid4().hex[:8]}@example.com",
            "password": "s3cret!",
            "roles": (Role.USER,),
            "department": "",
        }
        data.update(overrides)
        return NewUser(**data)

    return _factory

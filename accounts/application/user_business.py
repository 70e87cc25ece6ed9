"""
===============================================================================
USER BUSINESS: account lifecycle, credentials and plugin composition
===============================================================================

Name:
    User Business (core service)

Business Goal:
    Mediate between the API layer and the storage port, enforcing the account
    rules:
      - passwords are hashed (Argon2) and never stored or returned in clear
      - ids and creation timestamps are assigned once, by the core
      - partial updates only touch the fields that are present
      - deleting a user is complete only when dependent domains were notified
      - authentication failures never reveal whether an email is registered

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    UserBusiness

Responsibilities:
    - Implement the Business contract on top of a UserStorer.
    - Hash/verify credentials through identity.passwords.
    - Emit the "user deleted" delegate event.
    - Wrap every failure with an operation prefix, keeping its kind.
    - Run every operation inside a span and record its metrics.

Collaborators:
    - UserStorer (storage port), EventDispatcher (event port)
    - identity.passwords: hash_password / verify_password
    - crosscutting: tracing.traced, metrics, logger, exceptions

-------------------------------------------------------------------------------
Plugins
-------------------------------------------------------------------------------
A Plugin is a callable Business -> Business. new_business() folds the plugin
list right to left over the core, so the FIRST listed plugin is the OUTERMOST
layer: it runs first on the way in and last on the way out. None entries are
skipped. DelegatingBusiness is a convenience base that forwards every call and
re-wraps transaction-bound chains.
===============================================================================
"""

from __future__ import annotations

import copy
import functools
import time
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterator, List, Optional, Protocol, TypeVar
from uuid import UUID, uuid4

from ..crosscutting.exceptions import AccountsError, StorageError
from ..crosscutting.logger import logger
from ..crosscutting.metrics import OUTCOME_ERROR, OUTCOME_SUCCESS, record_business_call
from ..crosscutting.tracing import traced
from ..domain.entities import NewUser, UpdateUser, User
from ..domain.errors import (
    AuthenticationFailureError,
    DelegateCallError,
    UserNotFoundError,
)
from ..domain.events import ACTION_DELETED, EventDispatcher, action_deleted_data
from ..domain.query import OrderBy, Page, QueryFilter
from ..domain.repositories import CommitRollbacker, UserStorer
from ..identity.passwords import hash_password, verify_password

F = TypeVar("F", bound=Callable[..., Any])

SPAN_PREFIX = "business.userbus"

_AUTHENTICATION_FAILED = "authentication failed"


class Business(Protocol):
    """The user business contract shared by the core and every plugin."""

    def new_with_tx(self, tx: CommitRollbacker) -> "Business":
        ...

    def create(self, actor_id: UUID, new_user: NewUser) -> User:
        ...

    def update(self, actor_id: UUID, user: User, update_user: UpdateUser) -> User:
        ...

    def delete(self, actor_id: UUID, user: User) -> None:
        ...

    def query(
        self, filter: QueryFilter, order_by: OrderBy, page: Page
    ) -> List[User]:
        ...

    def count(self, filter: QueryFilter) -> int:
        ...

    def query_by_id(self, user_id: UUID) -> User:
        ...

    def query_by_email(self, email: str) -> User:
        ...

    def authenticate(self, email: str, password: str) -> User:
        ...


Plugin = Callable[[Business], Business]


# =============================================================================
# Helpers: instrumentation and error wrapping
# =============================================================================


def _instrumented(operation: str) -> Callable[[F], F]:
    """Run the method inside span `business.userbus.<operation>` and record metrics."""

    def decorator(func: F) -> F:
        traced_func = traced(f"{SPAN_PREFIX}.{operation}")(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            outcome = OUTCOME_ERROR
            try:
                result = traced_func(*args, **kwargs)
                outcome = OUTCOME_SUCCESS
                return result
            finally:
                record_business_call(operation, outcome, time.perf_counter() - started)

        return wrapper  # type: ignore[return-value]

    return decorator


@contextmanager
def _wrap_errors(prefix: str) -> Iterator[None]:
    """
    Prefix failures raised in the block with `prefix`.

    AccountsError subclasses keep their kind; anything else a port raises
    becomes StorageError. BaseException (cancellation) passes untouched.
    """
    try:
        yield
    except AccountsError as exc:
        raise exc.with_context(prefix) from exc
    except Exception as exc:
        raise StorageError(f"{prefix}: {exc}", original_error=exc) from exc


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Core
# =============================================================================


class UserBusiness:
    """
    Default Business implementation.

    Holds no mutable state: only the port handles and the clock it was built with.
    """

    def __init__(
        self,
        storer: UserStorer,
        delegate: EventDispatcher,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._storer = storer
        self._delegate = delegate
        self._clock = clock

    def new_with_tx(self, tx: CommitRollbacker) -> "UserBusiness":
        """Return a core bound to `tx`. Commit/rollback stay with the caller."""
        with _wrap_errors("new_with_tx"):
            storer = self._storer.new_with_tx(tx)

        return UserBusiness(storer, self._delegate, clock=self._clock)

    @_instrumented("create")
    def create(self, actor_id: UUID, new_user: NewUser) -> User:
        with _wrap_errors("create"):
            password_hash = hash_password(new_user.password)

        now = self._clock()

        user = User(
            id=uuid4(),
            name=new_user.name,
            email=new_user.email,
            password_hash=password_hash,
            roles=tuple(new_user.roles),
            department=new_user.department,
            enabled=True,
            date_created=now,
            date_updated=now,
        )

        with _wrap_errors("create"):
            self._storer.create(user)

        logger.info(
            "user created",
            extra={"user_id": str(user.id), "actor_id": str(actor_id)},
        )
        return user

    @_instrumented("update")
    def update(self, actor_id: UUID, user: User, update_user: UpdateUser) -> User:
        changes: dict[str, Any] = {}

        if update_user.name is not None:
            changes["name"] = update_user.name

        if update_user.email is not None:
            changes["email"] = update_user.email

        if update_user.roles is not None:
            changes["roles"] = tuple(update_user.roles)

        if update_user.password is not None:
            with _wrap_errors("update"):
                changes["password_hash"] = hash_password(update_user.password)

        if update_user.department is not None:
            changes["department"] = update_user.department

        if update_user.enabled is not None:
            changes["enabled"] = update_user.enabled

        changes["date_updated"] = self._next_update_time(user)

        updated = replace(user, **changes)

        with _wrap_errors("update"):
            self._storer.update(updated)

        logger.info(
            "user updated",
            extra={
                "user_id": str(updated.id),
                "actor_id": str(actor_id),
                "fields": sorted(k for k in changes if k != "date_updated"),
            },
        )
        return updated

    @_instrumented("delete")
    def delete(self, actor_id: UUID, user: User) -> None:
        with _wrap_errors("delete"):
            self._storer.delete(user)

        # Other domains react to the deletion before it counts as done.
        # The storage delete above stays applied if this fails.
        prefix = f"failed to execute `{ACTION_DELETED}` action"
        try:
            self._delegate.call(action_deleted_data(user.id))
        except DelegateCallError as exc:
            logger.exception(
                "user deleted but delegate call failed",
                extra={"user_id": str(user.id), "actor_id": str(actor_id)},
            )
            raise exc.with_context(prefix) from exc
        except Exception as exc:
            logger.exception(
                "user deleted but delegate call failed",
                extra={"user_id": str(user.id), "actor_id": str(actor_id)},
            )
            raise DelegateCallError(f"{prefix}: {exc}", original_error=exc) from exc

        logger.info(
            "user deleted",
            extra={"user_id": str(user.id), "actor_id": str(actor_id)},
        )

    @_instrumented("query")
    def query(
        self, filter: QueryFilter, order_by: OrderBy, page: Page
    ) -> List[User]:
        with _wrap_errors("query"):
            return self._storer.query(filter, order_by, page)

    @_instrumented("count")
    def count(self, filter: QueryFilter) -> int:
        with _wrap_errors("count"):
            return self._storer.count(filter)

    @_instrumented("querybyid")
    def query_by_id(self, user_id: UUID) -> User:
        with _wrap_errors(f"query: user_id[{user_id}]"):
            return self._storer.query_by_id(user_id)

    @_instrumented("querybyemail")
    def query_by_email(self, email: str) -> User:
        with _wrap_errors(f"query: email[{email}]"):
            return self._storer.query_by_email(email)

    @_instrumented("authenticate")
    def authenticate(self, email: str, password: str) -> User:
        """
        Verify credentials and return the stored user (claims user).

        Unknown email and wrong password raise the same
        AuthenticationFailureError; the lookup failure is only kept as __cause__.
        """
        try:
            user = self.query_by_email(email)
        except UserNotFoundError as exc:
            logger.warning("authentication failed")
            raise AuthenticationFailureError(
                f"authenticate: {_AUTHENTICATION_FAILED}"
            ) from exc
        except AccountsError as exc:
            raise exc.with_context("authenticate") from exc

        if not verify_password(password, user.password_hash):
            logger.warning("authentication failed", extra={"user_id": str(user.id)})
            raise AuthenticationFailureError(f"authenticate: {_AUTHENTICATION_FAILED}")

        return user

    def _next_update_time(self, user: User) -> datetime:
        """Current time, kept strictly after the pre-image's timestamps."""
        now = self._clock()
        floor = max(user.date_updated, user.date_created)
        if now <= floor:
            now = floor + timedelta(microseconds=1)
        return now


# =============================================================================
# Plugin composition
# =============================================================================


def new_business(
    storer: UserStorer,
    delegate: EventDispatcher,
    *plugins: Optional[Plugin],
    clock: Callable[[], datetime] = _utcnow,
) -> Business:
    """
    Build the user business: plugins[0](plugins[1](...plugins[-1](core))).

    None plugins are skipped.
    """
    bus: Business = UserBusiness(storer, delegate, clock=clock)

    for plugin in reversed(plugins):
        if plugin is not None:
            bus = plugin(bus)

    return bus


class DelegatingBusiness:
    """
    Base class for plugins: forwards every operation to the wrapped layer.

    Subclasses override only the operations they decorate. new_with_tx()
    rebinds the inner chain and re-wraps it with a shallow copy of this
    plugin; override rewrap() when per-transaction state must not be shared.
    """

    def __init__(self, inner: Business) -> None:
        self._inner = inner

    @property
    def inner(self) -> Business:
        return self._inner

    def rewrap(self, inner: Business) -> Business:
        clone = copy.copy(self)
        clone._inner = inner
        return clone

    def new_with_tx(self, tx: CommitRollbacker) -> Business:
        return self.rewrap(self._inner.new_with_tx(tx))

    def create(self, actor_id: UUID, new_user: NewUser) -> User:
        return self._inner.create(actor_id, new_user)

    def update(self, actor_id: UUID, user: User, update_user: UpdateUser) -> User:
        return self._inner.update(actor_id, user, update_user)

    def delete(self, actor_id: UUID, user: User) -> None:
        self._inner.delete(actor_id, user)

    def query(
        self, filter: QueryFilter, order_by: OrderBy, page: Page
    ) -> List[User]:
        return self._inner.query(filter, order_by, page)

    def count(self, filter: QueryFilter) -> int:
        return self._inner.count(filter)

    def query_by_id(self, user_id: UUID) -> User:
        return self._inner.query_by_id(user_id)

    def query_by_email(self, email: str) -> User:
        return self._inner.query_by_email(email)

    def authenticate(self, email: str, password: str) -> User:
        return self._inner.authenticate(email, password)

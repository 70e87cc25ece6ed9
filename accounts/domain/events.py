"""
===============================================================================
CRC CARD: domain/events.py
===============================================================================

Module:
    User domain events (delegate payloads)

Responsibilities:
    - Name the domain and the actions other domains can subscribe to.
    - Encode/decode the parameters of each action as JSON.
    - Define the event emission port (EventDispatcher).

Collaborators:
    - application/user_business.py: emits the "deleted" action.
    - application/delegate.py: in-process EventDispatcher implementation.
    - Subscribers in other domains decode ActionDeletedParams.

Notes:
    - raw_params is JSON text so subscribers do not import our entities.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from pydantic import BaseModel, ConfigDict

DOMAIN_NAME = "user"

ACTION_DELETED = "deleted"


@dataclass(frozen=True, slots=True)
class DelegateData:
    """Envelope handed to the event port."""

    domain: str
    action: str
    raw_params: str


class ActionDeletedParams(BaseModel):
    """Parameters of the "user deleted" action."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID

    def to_data(self) -> DelegateData:
        return DelegateData(
            domain=DOMAIN_NAME,
            action=ACTION_DELETED,
            raw_params=self.model_dump_json(),
        )

    @classmethod
    def from_data(cls, data: DelegateData) -> "ActionDeletedParams":
        return cls.model_validate_json(data.raw_params)


def action_deleted_data(user_id: UUID) -> DelegateData:
    """Build the delegate envelope announcing that `user_id` was deleted."""
    return ActionDeletedParams(user_id=user_id).to_data()


class EventDispatcher(Protocol):
    """
    R: Event emission port.

    call() must raise if any subscriber failed handling the event.
    """

    def call(self, data: DelegateData) -> None:
        ...

"""
===============================================================================
CRC CARD: application/delegate.py
===============================================================================

Class:
    Delegate

Responsibilities:
    - Let other domains register handlers for (domain, action) pairs.
    - Dispatch a DelegateData envelope to every handler registered for it,
      synchronously and in registration order.
    - Fail the dispatch on the first handler error (DelegateCallError).

Collaborators:
    - domain/events.py: DelegateData, EventDispatcher (port implemented here)
    - crosscutting/logger.py

Constraints:
    - Registration is lock-protected; dispatch iterates over a snapshot.
    - No retries: a failing subscriber fails the caller's operation.
===============================================================================
"""

from __future__ import annotations

from threading import Lock
from typing import Callable, Dict, List, Tuple

from ..crosscutting.logger import logger
from ..domain.errors import DelegateCallError
from ..domain.events import DelegateData

DelegateFunc = Callable[[DelegateData], None]


class Delegate:
    """In-process EventDispatcher."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._funcs: Dict[Tuple[str, str], List[DelegateFunc]] = {}

    def register(self, domain: str, action: str, func: DelegateFunc) -> None:
        with self._lock:
            self._funcs.setdefault((domain, action), []).append(func)

    def call(self, data: DelegateData) -> None:
        with self._lock:
            funcs = list(self._funcs.get((data.domain, data.action), ()))

        logger.info(
            "delegate call",
            extra={
                "domain": data.domain,
                "action": data.action,
                "handlers": len(funcs),
            },
        )

        for func in funcs:
            try:
                func(data)
            except Exception as exc:
                raise DelegateCallError(
                    f"dispatching {data.domain}.{data.action}: {exc}",
                    original_error=exc,
                ) from exc

"""UserStorer implementations."""

from .cached_user_store import CachingUserStore, UserCache
from .in_memory import InMemoryTransaction, InMemoryUserStore

__all__ = [
    "CachingUserStore",
    "InMemoryTransaction",
    "InMemoryUserStore",
    "UserCache",
]

"""
In-Memory Repository Implementations.

For testing and local development. NOT FOR PRODUCTION.
Data is lost on process restart.
"""

from .transaction import InMemoryTransaction, TransactionClosedError
from .user import InMemoryUserStore

__all__ = [
    "InMemoryTransaction",
    "InMemoryUserStore",
    "TransactionClosedError",
]

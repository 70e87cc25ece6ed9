"""
accounts: user-account business core.

Public entry points:
  - new_business(): build the core wrapped by zero or more plugins
  - Business / Plugin / DelegatingBusiness: the contract and plugin helpers
  - Delegate: in-process event dispatcher for the "user deleted" action
"""

from .application.delegate import Delegate
from .application.user_business import (
    Business,
    DelegatingBusiness,
    Plugin,
    UserBusiness,
    new_business,
)
from .domain.entities import NewUser, Role, UpdateUser, User
from .domain.query import OrderBy, Page, QueryFilter

__all__ = [
    "Business",
    "Delegate",
    "DelegatingBusiness",
    "NewUser",
    "OrderBy",
    "Page",
    "Plugin",
    "QueryFilter",
    "Role",
    "UpdateUser",
    "User",
    "UserBusiness",
    "new_business",
]

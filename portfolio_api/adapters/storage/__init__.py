"""Persistence adapters.

Repositories hide whether records live in relational tables or JSON files;
:func:`build_repositories` picks the backend once at startup.
"""

from portfolio_api.adapters.storage.base import (
    AbstractContactRepository,
    AbstractProjectRepository,
    AbstractSubscriberRepository,
    Repositories,
    StorageInfo,
)
from portfolio_api.adapters.storage.factory import build_repositories

__all__ = [
    "AbstractContactRepository",
    "AbstractProjectRepository",
    "AbstractSubscriberRepository",
    "Repositories",
    "StorageInfo",
    "build_repositories",
]

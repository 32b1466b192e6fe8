"""In-memory rate limit state store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import contextlib
import copy
import threading
from typing import Iterator

from portfolio_api.adapters.rate_limit.base import AbstractRateLimitStore, RateState


class InMemoryRateLimitStore(AbstractRateLimitStore):
    """Keeps the identity -> timestamps map in a dict.

    Important:
        This store is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits. Use the JSON file store to share state.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._state: RateState = {}

    @contextlib.contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def load(self) -> RateState:
        with self._lock:
            return copy.deepcopy(self._state)

    def save(self, state: RateState) -> None:
        with self._lock:
            self._state = copy.deepcopy(state)

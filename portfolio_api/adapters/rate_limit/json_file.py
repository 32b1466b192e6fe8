"""JSON file rate limit state store.

The state file holds a single JSON object mapping client address to a list of
integer epoch seconds, e.g. ``{"203.0.113.7": [1700000000, 1700000042]}``.
"""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import Any, Iterator

from portfolio_api.adapters.rate_limit.base import AbstractRateLimitStore, RateState
from portfolio_api.utils.file_io import locked_file, read_json, write_json_atomic

logger = logging.getLogger(__name__)


def _coerce_state(raw: Any) -> RateState:
    """Keep only well-formed ``identity -> [int, ...]`` entries."""
    if not isinstance(raw, dict):
        if raw:
            logger.warning("rate_limit_store.invalid_shape", extra={"type": type(raw).__name__})
        return {}

    state: RateState = {}
    for identity, timestamps in raw.items():
        if not isinstance(timestamps, list):
            continue
        clean = [int(ts) for ts in timestamps if isinstance(ts, (int, float)) and not isinstance(ts, bool)]
        if clean:
            state[str(identity)] = clean
    return state


class JsonFileRateLimitStore(AbstractRateLimitStore):
    """Rate limit state persisted in a JSON file shared by all workers."""

    def __init__(self, path: Path, *, lock_timeout: float = 10.0) -> None:
        self._path = Path(path)
        self._lock_timeout = lock_timeout

    @property
    def path(self) -> Path:
        return self._path

    @contextlib.contextmanager
    def locked(self) -> Iterator[None]:
        with locked_file(self._path, timeout=self._lock_timeout):
            yield

    def load(self) -> RateState:
        return _coerce_state(read_json(self._path, default={}))

    def save(self, state: RateState) -> None:
        write_json_atomic(self._path, state)

"""Sliding-window rate limiter over a pluggable state store."""

from __future__ import annotations

import time
from typing import Callable

from portfolio_api.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AbstractRateLimitStore,
    RateLimitResult,
    RateState,
)


def purge_expired(state: RateState, *, now: int, window_seconds: int) -> RateState:
    """Drop timestamps outside the window for every identity.

    A timestamp is live while ``now - ts < window_seconds``. Identities left
    without live timestamps are removed.
    """

    purged: RateState = {}
    for identity, timestamps in state.items():
        live = [ts for ts in timestamps if now - ts < window_seconds]
        if live:
            purged[identity] = live
    return purged


class SlidingWindowRateLimiter(AbstractRateLimiter):
    """Per-identity sliding-window counter.

    Every call loads the whole map, purges expired timestamps for *all*
    identities and, when the caller is admitted, rewrites the whole map. That
    makes each admitted request O(total identities); acceptable for the
    traffic of a portfolio site and kept for simplicity. Denied calls do not
    write anything.
    """

    def __init__(
        self,
        store: AbstractRateLimitStore,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._clock = clock

    @property
    def store(self) -> AbstractRateLimitStore:
        return self._store

    def admit(self, identity: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        """Admit or reject one request for ``identity``.

        Raises:
            ValueError: If identity is empty or limit/window are invalid.
        """
        if not identity:
            raise ValueError("identity must be a non-empty string")
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        now = int(self._clock())

        with self._store.locked():
            state = purge_expired(self._store.load(), now=now, window_seconds=window_seconds)
            timestamps = state.get(identity, [])

            if len(timestamps) >= limit:
                reset_at = min(timestamps) + window_seconds
                return RateLimitResult(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    reset_at=reset_at,
                    retry_after_seconds=max(1, reset_at - now),
                )

            timestamps.append(now)
            state[identity] = timestamps
            self._store.save(state)

        return RateLimitResult(
            allowed=True,
            limit=limit,
            remaining=max(0, limit - len(timestamps)),
            reset_at=min(timestamps) + window_seconds,
            retry_after_seconds=None,
        )

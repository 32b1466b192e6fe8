"""Rate limiter interfaces.

The API depends on these abstractions (not the concrete implementation) so
the persistence of rate limit state can change with minimal impact.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from dataclasses import dataclass

RateState = dict[str, list[int]]


@dataclass(frozen=True)
class RateLimitResult:
    """Result of an admission check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the oldest counted request leaves the window.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None

    def __bool__(self) -> bool:
        return self.allowed


class AbstractRateLimitStore(ABC):
    """Persistence for the identity -> timestamps map.

    Callers must hold :meth:`locked` around a ``load``/``save`` pair; the
    store guarantees that no other writer interleaves inside that block.
    """

    @abstractmethod
    def locked(self) -> AbstractContextManager[None]:
        """Exclusive access to the state for one read-modify-write."""
        raise NotImplementedError

    @abstractmethod
    def load(self) -> RateState:
        """Return the full persisted map. Unreadable state yields ``{}``."""
        raise NotImplementedError

    @abstractmethod
    def save(self, state: RateState) -> None:
        """Replace the full persisted map."""
        raise NotImplementedError


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def admit(self, identity: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        """Record a request for ``identity`` if it is within budget.

        Args:
            identity: Counting key (e.g., client IP address).
            limit: Max requests allowed within the window.
            window_seconds: Sliding window size in seconds.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

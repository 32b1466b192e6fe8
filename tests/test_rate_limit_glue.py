"""Tests for client address resolution and rate limit enforcement."""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from portfolio_api.adapters.rate_limit import InMemoryRateLimitStore, SlidingWindowRateLimiter
from portfolio_api.core.errors import RateLimitAppError
from portfolio_api.core.rate_limit import enforce_rate_limit, get_client_ip


def make_request(forwarded: str | None = None, peer: str | None = "10.0.0.9"):
    headers = {"X-Forwarded-For": forwarded} if forwarded else {}
    client = SimpleNamespace(host=peer) if peer else None
    return SimpleNamespace(headers=headers, client=client)


@pytest.mark.parametrize(
    ("forwarded", "expected"),
    [
        ("203.0.113.7", "203.0.113.7"),
        ("203.0.113.7, 10.0.0.1", "203.0.113.7"),
        ("unknown, 2001:db8::1", "2001:db8::1"),
        ("garbage", "10.0.0.9"),
        (None, "10.0.0.9"),
    ],
)
def test_client_ip_prefers_first_valid_forwarded(forwarded, expected):
    assert get_client_ip(make_request(forwarded), trust_forwarded_for=True) == expected


def test_forwarded_for_ignored_by_default():
    request = make_request("203.0.113.7")

    assert get_client_ip(request) == "10.0.0.9"


def test_client_ip_without_peer():
    assert get_client_ip(make_request(peer=None)) == "0.0.0.0"


def test_enforce_rate_limit_raises_with_budget_details():
    limiter = SlidingWindowRateLimiter(InMemoryRateLimitStore(), clock=Mock(return_value=1000.0))
    kwargs = {"scope": "contact", "client_ip": "1.2.3.4", "limit": 2, "window_seconds": 60}

    enforce_rate_limit(limiter, **kwargs)
    enforce_rate_limit(limiter, **kwargs)
    with pytest.raises(RateLimitAppError) as exc_info:
        enforce_rate_limit(limiter, message="Slow down", **kwargs)

    assert exc_info.value.message == "Slow down"
    assert exc_info.value.details == {
        "limit": 2,
        "remaining": 0,
        "reset_at": 1060,
        "retry_after": 60,
    }


def test_scopes_have_separate_budgets():
    limiter = SlidingWindowRateLimiter(InMemoryRateLimitStore(), clock=Mock(return_value=1000.0))

    enforce_rate_limit(limiter, scope="contact", client_ip="1.2.3.4", limit=1, window_seconds=60)
    enforce_rate_limit(limiter, scope="newsletter", client_ip="1.2.3.4", limit=1, window_seconds=60)

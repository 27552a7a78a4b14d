from __future__ import annotations

from services.api.middleware import RateLimitMiddleware


async def _noop_app(scope, receive, send) -> None:
    return None


def _limiter(**kwargs) -> RateLimitMiddleware:
    return RateLimitMiddleware(_noop_app, **kwargs)


def test_minute_and_hour_limits():
    limiter = _limiter(requests_per_minute=2, requests_per_hour=3)

    assert limiter._admit("10.0.0.1", 0.0) is None
    assert limiter._admit("10.0.0.1", 1.0) is None
    assert limiter._admit("10.0.0.1", 2.0) == "Rate limit exceeded. Please try again later."
    assert limiter._admit("10.0.0.1", 61.0) is None
    assert limiter._admit("10.0.0.1", 62.0) == "Hourly rate limit exceeded. Please try again later."


def test_clients_are_counted_separately():
    limiter = _limiter(requests_per_minute=1)

    assert limiter._admit("10.0.0.1", 0.0) is None
    assert limiter._admit("10.0.0.2", 0.0) is None
    assert limiter._admit("10.0.0.1", 1.0) is not None


def test_idle_clients_are_forgotten():
    limiter = _limiter()
    for idx in range(50):
        limiter._admit(f"10.0.1.{idx}", 0.0)
    assert len(limiter.hour_requests) == 50

    limiter._admit("10.0.0.99", 3700.0)

    assert set(limiter.minute_requests) == {"10.0.0.99"}
    assert set(limiter.hour_requests) == {"10.0.0.99"}


def test_minute_key_dropped_before_hour_key():
    limiter = _limiter()
    limiter._admit("10.0.0.1", 0.0)
    limiter._admit("10.0.0.2", 120.0)

    assert "10.0.0.1" not in limiter.minute_requests
    assert limiter.hour_requests["10.0.0.1"] == [0.0]

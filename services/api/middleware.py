"""Security and rate limiting middleware."""

from __future__ import annotations

import time
from typing import Any, Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

SWEEP_INTERVAL_SECONDS = 60.0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limiting middleware.

    Limits requests per client address. Over-limit requests get a 429 JSON
    body shaped like every other API error.
    """

    def __init__(
        self,
        app: Any,
        *,
        requests_per_minute: int = 60,
        requests_per_hour: int = 1000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize rate limiter.

        Args:
            app: ASGI application.
            requests_per_minute: Maximum requests per minute per client.
            requests_per_hour: Maximum requests per hour per client.
            clock: Time source in seconds.
        """
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.clock = clock
        self.minute_requests: dict[str, list[float]] = {}
        self.hour_requests: dict[str, list[float]] = {}
        self._last_sweep = 0.0

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        client_ip = request.client.host if request.client else "unknown"
        rejection = self._admit(client_ip, self.clock())
        if rejection is not None:
            return self._reject(rejection)
        return await call_next(request)

    def _admit(self, client_ip: str, current_time: float) -> str | None:
        """Record a request; returns the rejection message when over a limit."""
        self._sweep(current_time)
        self._clean_old_entries(client_ip, current_time)

        if len(self.minute_requests.get(client_ip, ())) >= self.requests_per_minute:
            return "Rate limit exceeded. Please try again later."
        if len(self.hour_requests.get(client_ip, ())) >= self.requests_per_hour:
            return "Hourly rate limit exceeded. Please try again later."

        self.minute_requests.setdefault(client_ip, []).append(current_time)
        self.hour_requests.setdefault(client_ip, []).append(current_time)
        return None

    @staticmethod
    def _reject(message: str) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"error": "RateLimitExceeded", "message": message, "details": {}},
        )

    def _sweep(self, current_time: float) -> None:
        """Drop expired entries of every client, at most once per minute."""
        if current_time - self._last_sweep < SWEEP_INTERVAL_SECONDS:
            return
        self._last_sweep = current_time
        for client_ip in set(self.minute_requests) | set(self.hour_requests):
            self._clean_old_entries(client_ip, current_time)

    def _clean_old_entries(self, client_ip: str, current_time: float) -> None:
        """Remove old entries from rate limit tracking; idle clients lose their key."""
        _prune(self.minute_requests, client_ip, current_time, 60)
        _prune(self.hour_requests, client_ip, current_time, 3600)


def _prune(requests: dict[str, list[float]], client_ip: str, current_time: float, window: float) -> None:
    recent = [t for t in requests.get(client_ip, ()) if current_time - t < window]
    if recent:
        requests[client_ip] = recent
    else:
        requests.pop(client_ip, None)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

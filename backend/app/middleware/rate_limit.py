"""Reusable in-memory rate limiter.

Guards the public auth endpoints per client address. It complements the
per-account lockout rather than replacing it. For multi-replica deployments,
swap to Redis.
"""

from __future__ import annotations

import threading
import time
from fastapi import HTTPException, Request, status

from backend.app.core.config import settings


class InMemoryRateLimiter:
    """Sliding-window in-memory rate limiter keyed by an arbitrary string."""

    def __init__(
        self,
        window_seconds: int = 60,
        max_attempts: int = 5,
        message: str = "Too many attempts, please try again later",
    ) -> None:
        self._window = window_seconds
        self._max = max_attempts
        self._message = message
        self._attempts: dict[str, list[float]] = {}
        self._last_sweep = 0.0
        # Sync endpoints run on a thread pool
        self._lock = threading.Lock()

    def check(self, key: str, now: float | None = None) -> None:
        """Raise HTTP 429 if *key* has exceeded *max_attempts* in the window."""
        now = time.time() if now is None else now
        with self._lock:
            if now - self._last_sweep >= self._window:
                self._sweep(now)
            recent = [t for t in self._attempts.get(key, ()) if now - t < self._window]
            if len(recent) >= self._max:
                self._attempts[key] = recent
                retry_after = int(self._window - (now - recent[0])) + 1
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=self._message,
                    headers={"Retry-After": str(retry_after)},
                )
            recent.append(now)
            self._attempts[key] = recent

    def _sweep(self, now: float) -> None:
        # Caller holds the lock. Runs at most once per window.
        stale = [
            k for k, times in self._attempts.items()
            if not times or now - times[-1] >= self._window
        ]
        for key in stale:
            del self._attempts[key]
        self._last_sweep = now

    def __len__(self) -> int:
        return len(self._attempts)

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._attempts.clear()
            else:
                self._attempts.pop(key, None)


auth_limiter = InMemoryRateLimiter(
    window_seconds=settings.AUTH_RATE_LIMIT_WINDOW_SECONDS,
    max_attempts=settings.AUTH_RATE_LIMIT_ATTEMPTS,
    message="Too many authentication attempts, please try again later",
)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def limit_auth_attempts(request: Request) -> None:
    """FastAPI dependency applying ``auth_limiter`` to the caller's address."""
    auth_limiter.check(client_ip(request))

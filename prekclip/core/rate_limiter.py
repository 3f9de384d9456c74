"""
Fixed-window request limiter for the credential endpoints.

Counters are keyed by ``<scope>:<client address>``. The address comes from
the socket peer; ``X-Forwarded-For`` is only honoured when the peer is one of
the configured trusted proxies.
"""
from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Iterable, Tuple

from fastapi import HTTPException, Request

TOO_MANY_REQUESTS = "Too many requests. Try again shortly."


class AuthRateLimiter:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, window_seconds: int) -> None:
        """Count one attempt for ``key``; raise 429 once ``limit`` is exceeded."""
        if limit <= 0:
            return
        now = self._clock()
        with self._lock:
            self._prune(now)
            count, closes_at = self._windows.get(key, (0, now + window_seconds))
            count += 1
            self._windows[key] = (count, closes_at)
        if count > limit:
            raise HTTPException(429, TOO_MANY_REQUESTS)

    def _prune(self, now: float) -> None:
        for key in [k for k, (_, closes_at) in self._windows.items() if closes_at <= now]:
            del self._windows[key]

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()


_limiter = AuthRateLimiter()


def client_address(request: Request, trusted_proxies: Iterable[str] = ()) -> str:
    peer = request.client.host if request.client and request.client.host else "unknown"
    trusted = set(trusted_proxies)
    if peer in trusted or "*" in trusted:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # Right-most hop that is not itself a proxy we trust.
            for hop in reversed([h.strip() for h in forwarded.split(",") if h.strip()]):
                if hop not in trusted:
                    return hop
    return peer


def rate_limit_ip(
    request: Request,
    scope: str,
    *,
    limit: int,
    window_seconds: int,
    trusted_proxies: Iterable[str] = (),
) -> None:
    _limiter.hit(f"{scope}:{client_address(request, trusted_proxies)}", limit, window_seconds)


def reset_limits() -> None:
    _limiter.clear()

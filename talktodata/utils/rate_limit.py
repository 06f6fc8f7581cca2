"""
Rate Limiter: fixed-window request counting per client.

Each client identifier gets {count, reset_time}; the first request after
reset_time opens a new window. Expired entries are swept lazily (at most
once per cleanup interval) during normal checks.

The state lives in this process only. Several API instances behind a load
balancer each keep their own counts; a shared store would be needed there.
The limiter is created once per app and injected (app.state), so it can be
swapped without touching the middleware.
"""
import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Mapping, Optional

from configs import (
    RATE_LIMIT_CLEANUP_INTERVAL_SECONDS,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
)

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_time: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one check, with the values the response headers need."""
    allowed: bool
    limit: int
    remaining: int
    reset_time: float
    retry_after: int = 0

    def headers(self) -> Dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_time)),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimiter:
    """Thread-safe in-memory fixed-window limiter."""

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
        cleanup_interval_seconds: int = RATE_LIMIT_CLEANUP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = Lock()
        self._last_cleanup = clock()

    def check(self, client_id: str) -> RateLimitDecision:
        """Count one request for `client_id` and decide whether to allow it."""
        now = self._clock()
        with self._lock:
            self._maybe_cleanup(now)

            window = self._windows.get(client_id)
            if window is None or now >= window.reset_time:
                window = _Window(count=0, reset_time=now + self.window_seconds)
                self._windows[client_id] = window

            if window.count >= self.max_requests:
                retry_after = max(1, int(window.reset_time - now + 0.999))
                logger.warning("Rate limit exceeded for client %s", client_id)
                return RateLimitDecision(
                    allowed=False,
                    limit=self.max_requests,
                    remaining=0,
                    reset_time=window.reset_time,
                    retry_after=retry_after,
                )

            window.count += 1
            return RateLimitDecision(
                allowed=True,
                limit=self.max_requests,
                remaining=self.max_requests - window.count,
                reset_time=window.reset_time,
            )

    def reset(self, client_id: Optional[str] = None) -> None:
        """Forget one client (or everyone)."""
        with self._lock:
            if client_id is None:
                self._windows.clear()
            else:
                self._windows.pop(client_id, None)

    @property
    def tracked_clients(self) -> int:
        return len(self._windows)

    def _maybe_cleanup(self, now: float) -> None:
        # Caller holds the lock
        if now - self._last_cleanup < self.cleanup_interval_seconds:
            return
        expired = [key for key, window in self._windows.items() if now >= window.reset_time]
        for key in expired:
            del self._windows[key]
        self._last_cleanup = now
        if expired:
            logger.debug("Rate limiter swept %d expired clients", len(expired))


def get_client_id(headers: Mapping[str, str], fallback: Optional[str] = None) -> str:
    """
    Identify the caller from proxy headers.

    X-Forwarded-For (first hop) wins, then X-Real-IP, then
    CF-Connecting-IP, then the socket address, then "unknown".
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    for header in ("x-real-ip", "cf-connecting-ip"):
        value = headers.get(header)
        if value:
            return value.strip()
    return fallback or "unknown"

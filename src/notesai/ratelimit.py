"""In-process sliding-window rate limiting for bug-report submissions.

Each identifier (``user:<id>:minute``, ``ip:<addr>:hour`` ...) owns an
ordered deque of accepted submission times. The limiter lives in a single
process; a multi-instance deployment needs a shared counter store instead.
"""

import math
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from .config import Settings

logger = structlog.get_logger(__name__)

MINUTE = 60.0
HOUR = 3600.0


@dataclass(frozen=True)
class Window:
    name: str
    seconds: float
    limit: int


@dataclass(frozen=True)
class Decision:
    allowed: bool
    retry_after: int = 0
    window: Window | None = None


class SlidingWindowLimiter:
    """Timestamp-list limiter; safe to share between request threads."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._spans: dict[str, float] = {}
        self._lock = threading.Lock()

    def _live(self, key: str, window: Window, now: float) -> deque[float]:
        hits = self._hits.get(key)
        if hits is None:
            return deque()
        while hits and now - hits[0] >= window.seconds:
            hits.popleft()
        if not hits:
            self._forget(key)
        return hits

    def _forget(self, key: str) -> None:
        del self._hits[key]
        del self._spans[key]

    def _sweep(self, now: float) -> None:
        """Drop identifiers whose newest hit has aged out of its window."""
        stale = [k for k, hits in self._hits.items() if now - hits[-1] >= self._spans[k]]
        for key in stale:
            self._forget(key)

    def hit(self, prefix: str, windows: list[Window]) -> Decision:
        """Check every window in order; record ``now`` only if all accept."""
        with self._lock:
            now = self._clock()
            self._sweep(now)
            for window in windows:
                hits = self._live(f"{prefix}:{window.name}", window, now)
                if len(hits) >= window.limit:
                    retry = math.ceil(hits[0] + window.seconds - now)
                    return Decision(False, max(retry, 0), window)
            for window in windows:
                key = f"{prefix}:{window.name}"
                self._hits.setdefault(key, deque()).append(now)
                self._spans[key] = window.seconds
            return Decision(True)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._spans.clear()

    def __len__(self) -> int:
        return len(self._hits)


_UNITS = {MINUTE: "minute", HOUR: "hour"}


class BugReportLimiter:
    """Per-user limits for signed-in reporters, per-IP limits otherwise."""

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.monotonic):
        self.limiter = SlidingWindowLimiter(clock)
        self.user_windows = [
            Window("minute", MINUTE, settings.bug_report_user_per_minute),
            Window("hour", HOUR, settings.bug_report_user_per_hour),
        ]
        self.ip_windows = [
            Window("minute", MINUTE, settings.bug_report_ip_per_minute),
            Window("hour", HOUR, settings.bug_report_ip_per_hour),
        ]

    def check(self, user_id: int | None, ip_address: str) -> tuple[Decision, str | None]:
        if user_id is not None:
            decision = self.limiter.hit(f"user:{user_id}", self.user_windows)
            who = "You"
        else:
            decision = self.limiter.hit(f"ip:{ip_address}", self.ip_windows)
            who = "Anonymous users"
        if decision.allowed:
            return decision, None

        window = decision.window
        unit = _UNITS.get(window.seconds, f"{int(window.seconds)} seconds")
        noun = "report" if window.limit == 1 else "reports"
        message = (
            f"Rate limit exceeded. {who} can submit {window.limit} {noun} per {unit}. "
            f"Please try again in {decision.retry_after} seconds."
        )
        logger.warning(
            "bug_reports.rate_limited",
            user_id=user_id,
            ip_address=ip_address,
            window=window.name,
            retry_after=decision.retry_after,
        )
        return decision, message

    def reset(self) -> None:
        self.limiter.reset()

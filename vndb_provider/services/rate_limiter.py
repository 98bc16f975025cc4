"""Sliding-window rate limiter for outbound VNDB requests."""

import asyncio
import time
from collections import deque
from collections.abc import Awaitable, Callable

import structlog

log = structlog.stdlib.get_logger()


class SlidingWindowRateLimiter:
    """Admit requests under a sliding-window cap and a minimum spacing.

    No more than ``max_requests`` admissions happen in any trailing
    ``window`` seconds, and consecutive admissions are at least
    ``min_interval`` seconds apart. Admission is serialized with a lock so
    overlapping callers cannot interleave their read-modify-write of the
    shared window.
    """

    def __init__(
        self,
        max_requests: int = 200,
        window: float = 300.0,
        min_interval: float = 1.5,
        buffer: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            max_requests: Maximum admissions inside one window
            window: Length of the sliding window in seconds
            min_interval: Minimum gap between two admissions in seconds
            buffer: Extra wait added when the window is full
            clock: Monotonic time source in seconds
            sleep: Coroutine used to wait
        """
        if max_requests < 1:
            raise ValueError("max_requests must be a positive integer")
        if window <= 0:
            raise ValueError("window must be positive")
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")

        self.max_requests = max_requests
        self.window = window
        self.min_interval = min_interval
        self.buffer = buffer
        self._clock = clock
        self._sleep = sleep
        self._timestamps: deque[float] = deque()
        self._last_request_time: float | None = None
        self._lock = asyncio.Lock()

    @property
    def pending_in_window(self) -> int:
        """Number of admissions still inside the trailing window."""
        self._prune(self._clock())
        return len(self._timestamps)

    @property
    def last_request_time(self) -> float | None:
        return self._last_request_time

    async def admit(self) -> float:
        """Wait until one more request may be sent, then record it.

        Returns:
            The clock reading recorded for this admission
        """
        async with self._lock:
            now = self._clock()
            self._prune(now)

            while len(self._timestamps) >= self.max_requests:
                oldest = self._timestamps[0]
                wait_time = self.window - (now - oldest) + self.buffer
                log.warning(
                    "Rate limit approaching, sleeping",
                    requests_in_window=len(self._timestamps),
                    max_requests=self.max_requests,
                    wait_seconds=round(wait_time, 3),
                )
                await self._sleep(wait_time)
                now = self._clock()
                self._prune(now)

            if self._last_request_time is not None:
                since_last = now - self._last_request_time
                if since_last < self.min_interval:
                    delay = self.min_interval - since_last
                    log.debug("Rate limiting: sleeping", sleep_time=round(delay, 3))
                    await self._sleep(delay)

            admitted_at = self._clock()
            self._timestamps.append(admitted_at)
            self._last_request_time = admitted_at
            return admitted_at

    def reset(self) -> None:
        """Forget all recorded admissions."""
        self._timestamps.clear()
        self._last_request_time = None

    def _prune(self, now: float) -> None:
        cutoff = now - self.window
        while self._timestamps and self._timestamps[0] <= cutoff:
            self._timestamps.popleft()

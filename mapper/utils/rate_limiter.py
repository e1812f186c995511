"""
Minimum-interval rate limiter for outbound API calls.

Suspends the calling coroutine until the configured interval has passed
since the previous call. Not locked: two coroutines that read the last
timestamp before either updates it can both pass the gate.
"""

import asyncio
import logging
import time

logger = logging.getLogger(__name__)


class RateLimiter:
    """Async minimum-interval gate."""

    def __init__(self, min_interval: float, name: str = ""):
        """
        Args:
            min_interval: Minimum seconds between two calls.
            name: Human-readable name for logging.
        """
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self.min_interval = min_interval
        self.name = name or f"limiter({min_interval}s)"
        self.last_call_time = float("-inf")  # no call yet

    @classmethod
    def from_ms(cls, interval_ms: float, name: str = "") -> "RateLimiter":
        return cls(interval_ms / 1000.0, name=name)

    async def wait(self) -> float:
        """
        Suspend until the next call is allowed.

        Returns:
            Seconds waited.
        """
        elapsed = time.monotonic() - self.last_call_time
        wait_time = max(0.0, self.min_interval - elapsed)

        if wait_time > 0:
            logger.debug(f"[{self.name}] Rate limiting: waiting {wait_time:.2f}s")
            await asyncio.sleep(wait_time)

        self.last_call_time = time.monotonic()
        return wait_time

    async def __aenter__(self):
        await self.wait()
        return self

    async def __aexit__(self, *args):
        pass

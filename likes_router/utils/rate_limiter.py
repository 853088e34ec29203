"""
Rate limiter utility for pacing catalog API requests.
Token bucket refilled continuously at requests_per_minute / 60 tokens per second.
"""

import asyncio
import time
from typing import Optional

class RateLimiter:
    """Token bucket rate limiter for API requests."""

    def __init__(self, requests_per_minute: int, burst_size: Optional[int] = None):
        """
        Initialize rate limiter.

        Args:
            requests_per_minute: Sustained request rate, must be positive
            burst_size: Bucket capacity (defaults to requests_per_minute)
        """
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")

        self.requests_per_minute = requests_per_minute
        self.burst_size = burst_size or requests_per_minute
        self.tokens = float(self.burst_size)
        self.last_update = time.monotonic()
        self.lock = asyncio.Lock()

    @property
    def refill_rate(self) -> float:
        """Tokens added per second."""
        return self.requests_per_minute / 60.0

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self.last_update
        self.tokens = min(self.burst_size, self.tokens + elapsed * self.refill_rate)
        self.last_update = now

    async def acquire(self) -> None:
        """Take one token, sleeping until one is available."""
        async with self.lock:
            self._refill()
            if self.tokens < 1:
                await asyncio.sleep((1 - self.tokens) / self.refill_rate)
                self._refill()
            self.tokens = max(0.0, self.tokens - 1)

    def available_tokens(self) -> float:
        """Get number of available tokens."""
        elapsed = time.monotonic() - self.last_update
        return min(self.burst_size, self.tokens + elapsed * self.refill_rate)

"""
Rate limiting policies for outbound calls.

Each external dependency (marketplace, model provider, seller loop) gets its
own limiter so delays can be tuned independently and swapped out in tests.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from config import RateLimitConfig

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class FixedDelayLimiter:
    """
    Waits a fixed delay before every call.

    Not adaptive: the delay does not react to upstream errors or latency.
    """

    def __init__(self, name: str, delay: float, sleep: SleepFn = asyncio.sleep):
        self.name = name
        self.delay = max(0.0, float(delay))
        self._sleep = sleep
        self.waits = 0

    async def wait(self) -> None:
        self.waits += 1
        if self.delay <= 0:
            return
        logger.debug(f"[RATE] {self.name}: waiting {self.delay:.2f}s")
        await self._sleep(self.delay)

    def __repr__(self) -> str:
        return f"FixedDelayLimiter(name={self.name!r}, delay={self.delay})"


@dataclass
class RateLimits:
    """One limiter per external dependency."""
    marketplace: FixedDelayLimiter
    model: FixedDelayLimiter
    seller: FixedDelayLimiter

    @classmethod
    def from_config(cls, config: RateLimitConfig, sleep: SleepFn = asyncio.sleep) -> "RateLimits":
        return cls(
            marketplace=FixedDelayLimiter("marketplace", config.marketplace_delay, sleep),
            model=FixedDelayLimiter("model", config.model_delay, sleep),
            seller=FixedDelayLimiter("seller", config.seller_delay, sleep),
        )

    @classmethod
    def disabled(cls) -> "RateLimits":
        """Zero-delay limiters (tests, local debugging)."""
        return cls(
            marketplace=FixedDelayLimiter("marketplace", 0),
            model=FixedDelayLimiter("model", 0),
            seller=FixedDelayLimiter("seller", 0),
        )

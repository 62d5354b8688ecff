"""Request pacing for providers with undocumented rate limits."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Protocol

Sleep = Callable[[float], Awaitable[None]]


class Throttle(Protocol):
    async def wait(self) -> None: ...


class FixedDelayThrottle:
    """Sleep a fixed delay between consecutive provider requests."""

    def __init__(self, delay_seconds: float, *, sleep: Sleep = asyncio.sleep) -> None:
        self.delay_seconds = max(delay_seconds, 0.0)
        self._sleep = sleep

    async def wait(self) -> None:
        if self.delay_seconds > 0:
            await self._sleep(self.delay_seconds)

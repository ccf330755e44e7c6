"""Timer abstraction used by the status poller.

Production code sleeps on the event loop; tests substitute a virtual
clock so poll spacing can be checked without waiting.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import List


class Scheduler(ABC):

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        ...

    @abstractmethod
    def now(self) -> float:
        ...


class AsyncioScheduler(Scheduler):
    """Suspends on ``asyncio.sleep`` so other requests are served meanwhile."""

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def now(self) -> float:
        return time.monotonic()


class VirtualClock(Scheduler):
    """Advances time instantly. Records every requested delay."""

    def __init__(self, start: float = 0.0):
        self._now = start
        self.sleeps: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self._now += seconds
        # still yield so interleaved tasks get a turn
        await asyncio.sleep(0)

    def now(self) -> float:
        return self._now

"""Virtual time for dry runs and tests."""

import asyncio
from typing import List, Optional


class VirtualClock:
    """A clock that only advances when something sleeps on it.

    Pass the instance as `clock` and its `sleep` as `sleep` to a
    RetryingCaller to replay a retry sequence instantly while keeping cohort
    timestamps consistent.
    """

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float, signal: Optional[asyncio.Event] = None) -> bool:
        self.sleeps.append(seconds)
        if signal is not None and signal.is_set():
            return False
        self.now += seconds
        await asyncio.sleep(0)
        return True

"""
Cancelable timer scheduling for session controllers
"""
import asyncio
import time
from typing import Callable


class TimerHandle:
    """Handle returned by Scheduler.call_later"""

    def cancel(self):
        raise NotImplementedError


class Scheduler:
    """Clock plus one-shot cancelable callbacks"""

    def now(self) -> float:
        raise NotImplementedError

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError


class AsyncioScheduler(Scheduler):
    """Scheduler backed by the running asyncio event loop"""

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)

"""
Per-question countdown.
"""
import asyncio
import logging
from typing import Callable, Optional

from .models import TimerState

logger = logging.getLogger("timer")


class QuestionTimer:
    """
    Countdown running as an asyncio task on the caller's loop.

    Decrements once per tick from the question's time limit and calls
    on_expire exactly once when it reaches zero. cancel() may be called any
    number of times, including from inside on_expire.
    """

    def __init__(self, time_limit: int,
                 on_expire: Callable[[], None],
                 tick_seconds: float = 1.0,
                 on_tick: Optional[Callable[[TimerState], None]] = None,
                 time_remaining: Optional[int] = None):
        self.time_limit = time_limit
        self.on_expire = on_expire
        self.on_tick = on_tick
        self.tick_seconds = tick_seconds
        self._remaining = time_limit if time_remaining is None else max(0, time_remaining)
        self._expired = False
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> TimerState:
        return TimerState(
            time_remaining=self._remaining,
            is_running=self.is_running,
            is_expired=self._expired,
        )

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._expired

    @property
    def elapsed(self) -> int:
        """Whole seconds used so far."""
        return self.time_limit - self._remaining

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while self._remaining > 0:
            await asyncio.sleep(self.tick_seconds)
            self._remaining -= 1
            if self.on_tick:
                self.on_tick(self.state)
        self._expired = True
        logger.debug("Timer expired after %d seconds", self.time_limit)
        try:
            self.on_expire()
        except Exception as e:
            logger.error("Error in timer expiry handler: %s", e)

    def cancel(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            return
        task.cancel()
        logger.debug("Timer cancelled with %d seconds remaining", self._remaining)

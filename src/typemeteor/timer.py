import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Countdown:
    """
    Periodic asyncio ticker. ``on_tick`` is called once per ``interval``
    seconds until it returns False or the countdown is cancelled.
    """

    def __init__(self, on_tick: Callable[[], bool], interval: float = 1.0):
        self._on_tick = on_tick
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            if not self._on_tick():
                break

    def cancel(self):
        if self._task is None:
            return
        if not self._task.done():
            self._task.cancel()
        self._task = None

"""Periodic trigger that keeps lateness classification current."""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """
    Calls ``on_tick`` every ``interval`` seconds until stopped.

    The tick only advances the clock the dashboard classifies against; it never
    fetches from the remote store.
    """

    def __init__(self, on_tick: Callable[[], None], interval: float = 60.0):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._on_tick = on_tick
        self._interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Reclassification scheduled every {self._interval}s")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Reclassification schedule stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._on_tick()
            except Exception as e:
                logger.exception(f"Error in reclassification tick: {e}")

    async def __aenter__(self) -> "RefreshScheduler":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

"""
Debouncer for live-typed search input.

Each trigger restarts the window; the callback fires once the input has been
quiet for the full delay.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Delays a callback until triggers stop arriving.

    Attributes:
        delay_seconds: Quiet period required before the callback fires
        callback: Zero-argument callable invoked on expiry
    """

    def __init__(self, delay_seconds: float, callback: Callable[[], object]):
        self.delay_seconds = delay_seconds
        self.callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self) -> None:
        """Restart the debounce window. Must be called from a running loop."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._wait_then_fire())

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait for a pending window to expire (or be cancelled)."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})

    async def _wait_then_fire(self) -> None:
        await asyncio.sleep(self.delay_seconds)
        self._task = None
        self.callback()

"""
Trailing-edge debounce for auto-save.

One Debouncer owns one timer task. schedule() cancels and replaces the pending timer,
so a burst of edits produces a single callback once edits stop for `delay` seconds.
A callback that has already started is never cancelled by a later schedule().
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from utils.log import get_logger

logger = get_logger(__name__)


class Debouncer:
    def __init__(self, callback: Callable[[], Awaitable[None]], delay: float):
        self._callback = callback
        self.delay = delay
        self._timer: Optional[asyncio.Task] = None
        self._running: set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def schedule(self) -> None:
        if self._closed:
            return
        self.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._fire())

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _fire(self) -> None:
        await asyncio.sleep(self.delay)
        # Fired: detach from the timer slot so the next schedule() starts a fresh one.
        task = asyncio.current_task()
        self._timer = None
        self._running.add(task)
        try:
            await self._callback()
        except Exception:
            logger.exception("Debounced callback failed")
        finally:
            self._running.discard(task)

    async def aclose(self) -> None:
        """Drop the pending timer and wait for a callback already in progress."""
        self._closed = True
        timer = self._timer
        self.cancel()
        if timer is not None:
            try:
                await timer
            except asyncio.CancelledError:
                pass
        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)

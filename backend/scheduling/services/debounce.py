from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, TypeVar

from scheduling.core.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DebouncedTask(Generic[T]):
    """Single-shot timer that is re-armed on every input change.

    Arming cancels the pending timer and any call still in flight, so only the
    latest run can ever hand its result to ``on_result``.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[T]],
        delay: float | None = None,
        on_result: Callable[[T], None] | None = None,
    ) -> None:
        self._callback = callback
        self._delay = delay if delay is not None else get_settings().conflict_check_debounce_seconds
        self._on_result = on_result
        self._task: asyncio.Task | None = None
        self._generation = 0

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def arm(self) -> asyncio.Task:
        self.cancel()
        self._generation += 1
        self._task = asyncio.get_running_loop().create_task(self._run(self._generation))
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> T | None:
        """Wait for the current run; returns ``None`` when it was superseded."""
        task = self._task
        if task is None:
            return None
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled():
                return None
            raise

    async def _run(self, generation: int) -> T | None:
        await asyncio.sleep(self._delay)
        result = await self._callback()
        if generation != self._generation:
            logger.debug("Discarding superseded debounced result")
            return None
        if self._on_result is not None:
            self._on_result(result)
        return result

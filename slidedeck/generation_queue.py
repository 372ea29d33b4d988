#!/usr/bin/env python3
"""
Rate-limited FIFO queue for calls to external generation APIs.

One worker loop per queue dispatches tasks strictly in enqueue order. At
most ``rate_limit`` calls may complete inside one window of ``window``
seconds; the window is a simple reset counter. When the budget is used up
the worker sleeps until the window boundary instead of dropping or
reordering work. A failing call resolves its own task as ``None`` and the
loop moves on.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Optional

from .errors import GenerationTaskFailed
from .models import QueueTask

logger = logging.getLogger(__name__)

Worker = Callable[[str], Awaitable[Any]]


class GenerationQueue:
    """
    Serialize async generation calls under a completion quota.

    Args:
        worker: Coroutine function performing one external call for a payload
        rate_limit: Completions allowed per window
        window: Window length in seconds
        name: Label used in log messages
        clock: Monotonic time source (injectable for tests)
        sleep: Coroutine used to wait for the window boundary
    """

    def __init__(
        self,
        worker: Worker,
        *,
        rate_limit: int = 5,
        window: float = 60.0,
        name: str = "generation",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if rate_limit < 1:
            raise ValueError(f"rate_limit must be at least 1, got {rate_limit}")
        if window <= 0:
            raise ValueError(f"window must be positive, got {window}")

        self.worker = worker
        self.rate_limit = rate_limit
        self.window = window
        self.name = name
        self._clock = clock
        self._sleep = sleep

        self._queue: Deque[QueueTask] = deque()
        self._processing = False
        self._worker_task: Optional[asyncio.Task] = None
        self._window_start: Optional[float] = None
        self._processed_in_window = 0

    @property
    def processing(self) -> bool:
        return self._processing

    @property
    def pending(self) -> int:
        return len(self._queue)

    async def enqueue(self, payload: str) -> Optional[Any]:
        """
        Add a payload and wait for its result.

        Returns:
            The worker's result, or ``None`` if the call failed
        """
        future = asyncio.get_running_loop().create_future()
        self._queue.append(QueueTask(payload, future))
        self.start()
        return await future

    def start(self) -> Optional[asyncio.Task]:
        """
        Start the worker loop unless it is already running.

        Calling this while the loop runs is a no-op.
        """
        if self._processing or not self._queue:
            return self._worker_task
        self._processing = True
        self._worker_task = asyncio.ensure_future(self._process())
        return self._worker_task

    async def join(self) -> None:
        """Wait until the current worker loop has drained the queue."""
        if self._worker_task is not None:
            await self._worker_task

    async def _process(self) -> None:
        try:
            while self._queue:
                now = self._clock()

                # New window: reset the counter
                if self._window_start is None or now - self._window_start >= self.window:
                    self._processed_in_window = 0
                    self._window_start = now

                if self._processed_in_window >= self.rate_limit:
                    wait_time = self.window - (now - self._window_start)
                    logger.info(
                        f"⏳ {self.name} queue hit {self.rate_limit} per {self.window:g}s, "
                        f"waiting {wait_time:.1f}s ({len(self._queue)} pending)"
                    )
                    await self._sleep(wait_time)
                    continue

                task = self._queue.popleft()
                try:
                    result = await self.worker(task.payload)
                except Exception as exc:
                    logger.error(f"❌ {self.name} queue: {GenerationTaskFailed(task.payload, exc)}")
                    self._resolve(task, None)
                    continue

                self._processed_in_window += 1
                self._resolve(task, result)
        finally:
            self._processing = False

    @staticmethod
    def _resolve(task: QueueTask, result: Any) -> None:
        # The caller may have stopped waiting; the queue still drains.
        if not task.future.done():
            task.future.set_result(result)

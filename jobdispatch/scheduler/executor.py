"""
Periodic task executor.

A small fixed-size pool of repeating background tasks on the running event
loop. Cancellation is cooperative: cancelling a schedule stops future runs
but lets a run already in progress finish. Shutdown waits a bounded amount
of time for in-flight runs before cancelling them outright.
"""

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from jobdispatch.errors import ExecutorShutdownError

logger = logging.getLogger(__name__)

TaskFunc = Callable[[], Awaitable[Any]]


class ScheduledTask:
    """
    Handle for one fixed-rate schedule.

    Runs of the same schedule never overlap. When a run takes longer than
    the interval, the next one starts as soon as it returns; missed ticks
    are not replayed.
    """

    def __init__(
        self,
        name: str,
        func: TaskFunc,
        initial_delay: float,
        interval: float,
        semaphore: asyncio.Semaphore,
    ):
        self.name = name
        self.interval = interval
        self.run_count = 0
        self.failure_count = 0

        self._func = func
        self._initial_delay = initial_delay
        self._semaphore = semaphore
        self._stop = asyncio.Event()
        self._in_flight = False
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        """Start the schedule on the running event loop."""
        self._task = asyncio.create_task(self._run(), name=self.name)

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    @property
    def done(self) -> bool:
        return self._task is None or self._task.done()

    @property
    def in_flight(self) -> bool:
        """Whether a run is executing right now."""
        return self._in_flight

    def cancel(self) -> None:
        """Stop future runs. A run in progress is allowed to finish."""
        self._stop.set()

    def force_cancel(self) -> None:
        """Cancel the underlying asyncio task, interrupting a run in progress."""
        self._stop.set()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def join(self, timeout: float | None = None) -> bool:
        """
        Wait for the schedule to finish after ``cancel``.

        Returns:
            True if it finished within the timeout.
        """
        if self._task is None:
            return True
        done, _ = await asyncio.wait({self._task}, timeout=timeout)
        return bool(done)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()

        if await self._sleep(self._initial_delay):
            return

        next_run = loop.time()
        while not self._stop.is_set():
            async with self._semaphore:
                # Cancelled while waiting for a free slot
                if self._stop.is_set():
                    break
                self._in_flight = True
                try:
                    await self._func()
                except Exception as e:
                    self.failure_count += 1
                    logger.exception(
                        f"Error in scheduled task: {e}",
                        extra={"task": self.name},
                    )
                finally:
                    self._in_flight = False
                    self.run_count += 1

            next_run = max(next_run + self.interval, loop.time())
            if await self._sleep(next_run - loop.time()):
                break

        logger.debug("Scheduled task stopped", extra={"task": self.name, "runs": self.run_count})

    async def _sleep(self, delay: float) -> bool:
        """Sleep up to ``delay`` seconds. Returns True if cancelled meanwhile."""
        if self._stop.is_set():
            return True
        if delay <= 0:
            # Yield so a zero-delay schedule can't starve the loop.
            await asyncio.sleep(0)
            return self._stop.is_set()
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True


class TaskExecutor:
    """
    Fixed-size pool of periodic background tasks.

    ``pool_size`` bounds how many runs (across all schedules) execute at
    the same time.
    """

    def __init__(
        self,
        pool_size: int = 1,
        name_prefix: str = "job-dispatcher-",
        shutdown_await_seconds: float = 5.0,
    ):
        """
        Initialize the executor.

        Args:
            pool_size: Maximum concurrently executing runs. Values below 1 mean 1.
            name_prefix: Prefix for generated task names.
            shutdown_await_seconds: How long shutdown waits for in-flight runs.
        """
        self.pool_size = max(1, pool_size)
        self.name_prefix = name_prefix
        self.shutdown_await_seconds = shutdown_await_seconds

        self._semaphore = asyncio.Semaphore(self.pool_size)
        self._tasks: list[ScheduledTask] = []
        self._counter = itertools.count()
        self._shutdown = False

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    @property
    def active_count(self) -> int:
        """Number of schedules that are neither cancelled nor finished."""
        return sum(1 for task in self._tasks if not task.cancelled and not task.done)

    def schedule_at_fixed_rate(
        self,
        func: TaskFunc,
        initial_delay: float,
        interval: float,
        name: str | None = None,
    ) -> ScheduledTask:
        """
        Run ``func`` every ``interval`` seconds after ``initial_delay``.

        Must be called from within a running event loop.

        Args:
            func: Coroutine function to run. Exceptions are logged, not raised.
            initial_delay: Seconds before the first run.
            interval: Seconds between run starts.
            name: Task name. Generated from the prefix when omitted.

        Returns:
            ScheduledTask: Handle used to cancel the schedule.

        Raises:
            ExecutorShutdownError: If the executor has been shut down.
        """
        if self._shutdown:
            raise ExecutorShutdownError("Task executor has been shut down")
        if interval <= 0:
            raise ValueError("interval must be positive")

        task_name = f"{self.name_prefix}{name or next(self._counter)}"
        scheduled = ScheduledTask(
            name=task_name,
            func=func,
            initial_delay=max(0.0, initial_delay),
            interval=interval,
            semaphore=self._semaphore,
        )
        scheduled.start()

        self._tasks = [task for task in self._tasks if not task.done]
        self._tasks.append(scheduled)
        return scheduled

    async def shutdown(self) -> None:
        """
        Stop every schedule.

        In-flight runs get ``shutdown_await_seconds`` to finish; whatever is
        still running afterwards is cancelled.
        """
        logger.info("Shutting down task executor")
        self._shutdown = True

        for task in self._tasks:
            task.cancel()

        pending = [task for task in self._tasks if not task.done]
        finished = await asyncio.gather(
            *(task.join(self.shutdown_await_seconds) for task in pending)
        )
        stuck = [task for task, ok in zip(pending, finished) if not ok]

        if stuck:
            logger.warning(
                "Task executor did not terminate in time; cancelling running tasks",
                extra={"tasks": [task.name for task in stuck]},
            )
            for task in stuck:
                task.force_cancel()
            finished = await asyncio.gather(
                *(task.join(self.shutdown_await_seconds) for task in stuck)
            )
            if not all(finished):
                logger.error("Task executor did not terminate after cancellation")

        self._tasks = []
        logger.info("Task executor shutdown complete")

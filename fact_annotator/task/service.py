"""Task tracking service for fact-annotator.

This service tracks the asynchronous tasks of the agent. Long running loops
are created as supervised tasks: a loop that raises is logged and restarted,
and one that keeps failing is abandoned and reported through `failed_tasks`
instead of bringing down the process.
"""

from abc import ABC, abstractmethod
import asyncio
from collections import deque
from collections.abc import Callable, Coroutine
import logging
import time
from typing import Any

_LOGGER = logging.getLogger(__name__)

__all__: list[str] = []

CoroutineFactory = Callable[[], Coroutine[None, None, Any]]


class TaskService(ABC):
    """Service for running and tracking the agent's background tasks."""

    @abstractmethod
    def create_background_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Run the coroutine as a tracked task.

        The service holds a reference to the task until it is done.
        """

    @abstractmethod
    def create_supervised_task(
        self,
        factory: CoroutineFactory,
        name: str,
        max_restarts: int = 5,
        restart_window: float = 60.0,
        restart_delay: float = 1.0,
    ) -> asyncio.Task[Any]:
        """Create a long running background task that is restarted on failure.

        Args:
            factory: Called to create a fresh coroutine for every (re)start
            name: The name of the task, used in logs and `failed_tasks`
            max_restarts: Restarts allowed within `restart_window` seconds
                before the task is abandoned
            restart_window: Window in seconds used to count restarts
            restart_delay: Seconds to wait before each restart

        Returns:
            The created supervisor task
        """

    @property
    @abstractmethod
    def failed_tasks(self) -> set[str]:
        """Names of supervised tasks that were abandoned after repeated failures."""


class TaskServiceImpl(TaskService):
    """TaskService running tasks on the current event loop."""

    def __init__(self) -> None:
        """Initialize the task service."""
        self._tasks: set[asyncio.Task[Any]] = set()
        self._failed_tasks: set[str] = set()

    def create_background_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Run the coroutine as a tracked task."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def create_supervised_task(
        self,
        factory: CoroutineFactory,
        name: str,
        max_restarts: int = 5,
        restart_window: float = 60.0,
        restart_delay: float = 1.0,
    ) -> asyncio.Task[Any]:
        """Create a long running background task that is restarted on failure."""
        self._failed_tasks.discard(name)
        return self.create_background_task(
            self._supervise(factory, name, max_restarts, restart_window, restart_delay),
            name=name,
        )

    async def _supervise(
        self,
        factory: CoroutineFactory,
        name: str,
        max_restarts: int,
        restart_window: float,
        restart_delay: float,
    ) -> None:
        """Run the coroutine from factory, restarting it when it raises."""
        failures: deque[float] = deque()
        while True:
            try:
                await factory()
                _LOGGER.debug("Supervised task %s finished", name)
                return
            except asyncio.CancelledError:
                raise
            except Exception:
                _LOGGER.exception("Supervised task %s failed", name)
            now = time.monotonic()
            failures.append(now)
            while failures and now - failures[0] > restart_window:
                failures.popleft()
            if len(failures) > max_restarts:
                _LOGGER.error(
                    "Supervised task %s failed %d times in %.0fs, giving up",
                    name,
                    len(failures),
                    restart_window,
                )
                self._failed_tasks.add(name)
                return
            _LOGGER.info("Restarting supervised task %s in %.1fs", name, restart_delay)
            await asyncio.sleep(restart_delay)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        """Forget a finished task and log how it ended."""
        self._tasks.discard(task)
        if task.cancelled():
            _LOGGER.debug("Task %s cancelled", task.get_name())
        elif (err := task.exception()) is not None:
            _LOGGER.error("Task %s failed: %s", task.get_name(), err)

    @property
    def failed_tasks(self) -> set[str]:
        """Names of supervised tasks that were abandoned after repeated failures."""
        return set(self._failed_tasks)

"""Agent for fact-annotator.

This module provides the agent that wires the reconciliation components
together and manages their lifecycle.
"""

import asyncio
from collections.abc import Awaitable
import logging
from typing import Any

from fact_annotator.config import ReconcilerConfig
from fact_annotator.exceptions import WorkerException
from fact_annotator.facts import FactSource
from fact_annotator.store import PodStore
from fact_annotator.task import TaskService, get_task_service

from .context import ReconcileContext
from .sweeper import ResyncSweeper
from .watcher import ResourceWatcher
from .worker import AnnotationWorkerPool

_LOGGER = logging.getLogger(__name__)

WATCHER_TASK = "resource-watcher"
SWEEPER_TASK = "resync-sweeper"


class ReconcileAgent:
    """Agent coordinating the watcher, sweeper and annotation workers.

    The agent is responsible for:
    - Establishing the watch subscription before anything else runs
    - Running the watcher, the sweeper and the workers as supervised tasks
    - Cancelling all of them on stop
    """

    def __init__(
        self,
        store: PodStore,
        fact_source: FactSource,
        config: ReconcilerConfig | None = None,
        task_service: TaskService | None = None,
    ) -> None:
        """Initialize the agent."""
        self.context = ReconcileContext(
            store=store,
            fact_source=fact_source,
            config=config or ReconcilerConfig(),
        )
        self._task_service = task_service or get_task_service()
        self.watcher = ResourceWatcher(self.context)
        self.sweeper = ResyncSweeper(self.context)
        self.workers = AnnotationWorkerPool(self.context, self._task_service)
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def started(self) -> bool:
        """Return True while the agent is running."""
        return bool(self._tasks)

    async def start(self) -> None:
        """Open the watch subscription and start all components.

        Raises:
            WatchException: If the watch subscription could not be established.
        """
        if self._tasks:
            return

        _LOGGER.info("Starting agent")
        await self.watcher.start()
        self.workers.start()
        config = self.context.config
        for name, factory in (
            (WATCHER_TASK, self.watcher.run),
            (SWEEPER_TASK, self.sweeper.run),
        ):
            self._tasks[name] = self._task_service.create_supervised_task(
                factory,
                name=name,
                max_restarts=config.max_restarts,
                restart_window=config.restart_window,
                restart_delay=config.restart_delay,
            )

    async def stop(self) -> None:
        """Cancel all components and wait for them to exit.

        Work items still in the queue are abandoned.
        """
        if not self._tasks:
            return

        _LOGGER.info("Stopping agent")
        for name, task in self._tasks.items():
            _LOGGER.debug("Stopping %s", name)
            task.cancel()
        await asyncio.gather(*self._tasks.values(), return_exceptions=True)
        await self.workers.stop()
        self._tasks.clear()
        _LOGGER.info("Agent stopped")

    async def run_once(self) -> int:
        """Run a single resync sweep and wait until every queued pod is processed.

        Only the workers are started; no watch subscription is opened.

        Returns:
            The number of pods queued by the sweep.

        Raises:
            WorkerException: If all workers gave up before the queue drained.
        """
        self.workers.start()
        try:
            queued: int = await self._with_workers(self.sweeper.sweep())
            await self._with_workers(self.context.queue.join())
        finally:
            await self.workers.stop()
        return queued

    async def _with_workers(self, aw: Awaitable[Any]) -> Any:
        """Await the result, giving up once no worker is left to consume the queue."""
        pending = asyncio.ensure_future(aw)
        running: set[asyncio.Future[Any]] = {*self.workers.tasks}
        try:
            while running:
                done, running = await asyncio.wait(
                    running | {pending}, return_when=asyncio.FIRST_COMPLETED
                )
                if pending in done:
                    return pending.result()
                running.discard(pending)
        finally:
            pending.cancel()
        raise WorkerException(
            f"All annotation workers failed with {self.context.queue.qsize()} "
            "pods left in the queue"
        )

    @property
    def healthy(self) -> bool:
        """Return True if all components are running.

        The watcher may have exited when reconnects are disabled; the agent
        stays healthy as long as the sweeper and workers are running.
        """
        if not self._tasks or self._task_service.failed_tasks:
            return False
        if self._tasks[SWEEPER_TASK].done():
            return False
        return not any(task.done() for task in self.workers.tasks)

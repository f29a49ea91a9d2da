"""Annotation worker pool.

A fixed number of workers drain the shared work queue. For every item a
worker re-reads the pod, checks for the annotation marker, and writes a
fact to the pod only when the marker is still missing. This is the only
code path that mutates pods. The watcher and the sweeper may both queue
the same pod.

Failed writes are logged and dropped; the next resync sweep queues the pod
again since its marker was never set.
"""

import asyncio
from collections import Counter
from collections.abc import AsyncGenerator
import contextlib
from functools import partial
import logging

from fact_annotator.exceptions import (
    FactSourceException,
    ObjectNotFoundError,
    StoreException,
)
from fact_annotator.manifest import NamedResource, WorkItem
from fact_annotator.task import TaskService

from .context import ReconcileContext

_LOGGER = logging.getLogger(__name__)


class AnnotationWorkerPool:
    """Runs the workers that annotate queued pods."""

    def __init__(self, context: ReconcileContext, task_service: TaskService) -> None:
        """Initialize the AnnotationWorkerPool.

        Args:
            context: The shared reconciliation context
            task_service: The TaskService used to supervise the workers
        """
        self._context = context
        self._task_service = task_service
        self._tasks: list[asyncio.Task[None]] = []
        self._locks: dict[NamedResource, asyncio.Lock] = {}
        self._lock_users: Counter[NamedResource] = Counter()

    @property
    def tasks(self) -> list[asyncio.Task[None]]:
        """The supervisor tasks of the running workers."""
        return list(self._tasks)

    def start(self) -> None:
        """Start the configured number of workers."""
        if self._tasks:
            return
        config = self._context.config
        _LOGGER.info("Starting %d annotation workers", config.workers)
        for worker_id in range(config.workers):
            self._tasks.append(
                self._task_service.create_supervised_task(
                    partial(self.run_worker, worker_id),
                    name=f"annotation-worker-{worker_id}",
                    max_restarts=config.max_restarts,
                    restart_window=config.restart_window,
                    restart_delay=config.restart_delay,
                )
            )

    async def stop(self) -> None:
        """Cancel all workers and wait for them to exit."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    async def run_worker(self, worker_id: int) -> None:
        """Process work items from the queue until cancelled."""
        _LOGGER.debug("Annotation worker %d started", worker_id)
        queue = self._context.queue
        while True:
            item = await queue.get()
            try:
                await self.annotate(item, worker_id)
            finally:
                queue.task_done()

    @contextlib.asynccontextmanager
    async def _resource_lock(
        self, resource_id: NamedResource
    ) -> AsyncGenerator[None, None]:
        """Serialize the read-check-write cycle of workers for one resource."""
        lock = self._locks.setdefault(resource_id, asyncio.Lock())
        self._lock_users[resource_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[resource_id] -= 1
            if not self._lock_users[resource_id]:
                del self._lock_users[resource_id]
                del self._locks[resource_id]

    async def annotate(self, item: WorkItem, worker_id: int = 0) -> bool:
        """Annotate the pod referenced by the work item if it has no marker.

        Returns:
            True if the marker was written by this call.
        """
        store = self._context.store
        key = self._context.annotation_key
        resource_id = item.resource_id
        async with self._resource_lock(resource_id):
            try:
                pod = await store.get_pod(item.pod.namespace, item.pod.name)
            except ObjectNotFoundError:
                _LOGGER.info("%s no longer exists, skipping", resource_id)
                return False
            except StoreException as err:
                _LOGGER.error("Unable to read %s: %s", resource_id, err)
                return False

            if key in pod.annotations:
                _LOGGER.info("%s already has a %s annotation", resource_id, key)
                return False

            try:
                fact = self._context.fact_source.next()
            except FactSourceException as err:
                _LOGGER.error("No fact available for %s: %s", resource_id, err)
                return False

            updated = pod.with_annotation(key, fact.text)
            try:
                await store.update_pod(updated)
            except StoreException as err:
                _LOGGER.error(
                    "Unable to update pod %s in namespace %s: %s",
                    pod.name,
                    pod.namespace,
                    err,
                )
                return False

        _LOGGER.info(
            "Worker %d updated %s to %s=%r", worker_id, resource_id, key, fact.text
        )
        return True

"""Resync sweeper that periodically queues every eligible pod.

The sweep recovers pods the watch stream missed, e.g. pods that already
existed before the agent started or changes lost while the stream was
down. Pods already queued by the watcher may be queued again; the workers
discard pods that carry the marker by the time they are processed.
"""

import asyncio
import logging
from time import perf_counter

from fact_annotator.exceptions import StoreException

from .context import ReconcileContext
from .eligibility import enqueue_if_eligible

_LOGGER = logging.getLogger(__name__)


class ResyncSweeper:
    """Lists all pods on a fixed period and queues the eligible ones."""

    def __init__(self, context: ReconcileContext) -> None:
        """Initialize the ResyncSweeper."""
        self._context = context

    async def sweep(self) -> int:
        """List all pods once and queue every eligible pod.

        Returns:
            The number of pods queued.
        """
        t1 = perf_counter()
        try:
            pods = await self._context.store.list_pods()
        except StoreException as err:
            _LOGGER.error("Resync failed to list pods: %s", err)
            return 0
        queued = 0
        for pod in pods:
            if await enqueue_if_eligible(self._context, pod):
                queued += 1
        _LOGGER.info("Resync queued %d of %d pods", queued, len(pods))
        _LOGGER.debug("Resync took %0.2fs", perf_counter() - t1)
        return queued

    async def run(self) -> None:
        """Sweep on every resync interval until cancelled."""
        interval = self._context.config.resync_interval
        while True:
            await asyncio.sleep(interval)
            _LOGGER.debug("----- Resync -----")
            await self.sweep()

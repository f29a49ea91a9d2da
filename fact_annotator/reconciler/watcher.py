"""Resource watcher forwarding pod changes to the work queue."""

import asyncio
from collections.abc import AsyncIterator
import logging

from fact_annotator.exceptions import WatchException
from fact_annotator.store import EventType, WatchEvent

from .context import ReconcileContext
from .eligibility import enqueue_if_eligible

_LOGGER = logging.getLogger(__name__)

FORWARD_EVENTS = {EventType.ADDED, EventType.MODIFIED}


class ResourceWatcher:
    """Subscribes to pod changes in all namespaces.

    Added and modified pods that pass the eligibility check are queued for
    annotation. All other events are logged and ignored.

    When the stream ends or fails after it was established the watcher
    reopens it with an exponential backoff, unless `watch_reconnect` is
    disabled in which case the watcher stops and only the resync sweeper
    keeps pods annotated.
    """

    def __init__(self, context: ReconcileContext) -> None:
        """Initialize the ResourceWatcher."""
        self._context = context
        self._stream: AsyncIterator[WatchEvent] | None = None

    async def start(self) -> None:
        """Establish the watch subscription.

        Raises:
            WatchException: If the subscription could not be established.
        """
        self._stream = await self._open()

    async def _open(self) -> AsyncIterator[WatchEvent]:
        stream = await self._context.store.open_watch()
        _LOGGER.info("Watching pods in all namespaces")
        return stream

    async def run(self) -> None:
        """Process watch events until cancelled."""
        stream = self._stream if self._stream is not None else await self._open()
        self._stream = None
        config = self._context.config
        backoff = config.reconnect_backoff
        while True:
            try:
                async for event in stream:
                    backoff = config.reconnect_backoff
                    await self.handle_event(event)
                _LOGGER.warning("Pod watch stream ended")
            except WatchException as err:
                _LOGGER.error("Pod watch stream failed: %s", err)
            if not config.watch_reconnect:
                _LOGGER.warning(
                    "Watch reconnect is disabled; relying on resync sweeps only"
                )
                return
            stream = await self._reopen(backoff)
            backoff = min(backoff * 2, config.reconnect_backoff_max)

    async def _reopen(self, backoff: float) -> AsyncIterator[WatchEvent]:
        """Reopen the watch stream, retrying with backoff until it succeeds."""
        config = self._context.config
        while True:
            _LOGGER.info("Reopening pod watch in %.1fs", backoff)
            await asyncio.sleep(backoff)
            try:
                stream = await self._context.store.open_watch()
            except WatchException as err:
                _LOGGER.error("Unable to reopen pod watch: %s", err)
                backoff = min(backoff * 2, config.reconnect_backoff_max)
                continue
            _LOGGER.info("Pod watch reopened")
            return stream

    async def handle_event(self, event: WatchEvent) -> bool:
        """Queue the pod of an added or modified event if it is eligible.

        Returns:
            True if the pod was queued.
        """
        if event.type not in FORWARD_EVENTS:
            _LOGGER.debug("Ignoring watch event type %s", event.type)
            if event.type == EventType.ERROR:
                _LOGGER.warning("Watch error event: %s", event.raw)
            return False
        if event.pod is None:
            _LOGGER.warning("Unexpected object type in %s event", event.type)
            return False
        _LOGGER.debug("Watch event %s for %s", event.type, event.pod.resource_id)
        return await enqueue_if_eligible(self._context, event.pod)

"""Module for an in memory pod store."""

import asyncio
from collections.abc import AsyncGenerator, Callable
import dataclasses
import itertools
import logging

from fact_annotator.manifest import NamedResource, Pod
from fact_annotator.exceptions import ObjectNotFoundError, ResourceConflictError

from .store import PodStore, WatchEvent, EventType


_LOGGER = logging.getLogger(__name__)

# Marks the end of a watch stream on a listener queue
_CLOSED = object()


class InMemoryPodStore(PodStore):
    """In-memory implementation of the PodStore interface.

    Pods are keyed by NamedResource and stamped with an increasing resource
    version on every write. Updates carrying a stale resource version are
    rejected like the kubernetes API server does. Every change is delivered
    to the open watch streams.
    """

    def __init__(self) -> None:
        """Initialize the InMemoryPodStore."""
        self._pods: dict[NamedResource, Pod] = {}
        self._versions = itertools.count(1)
        self._listeners: list[Callable[[WatchEvent | object], None]] = []

    def add_pod(self, pod: Pod) -> Pod:
        """Create or overwrite a pod, as an external actor would."""
        resource_id = pod.resource_id
        event_type = (
            EventType.MODIFIED if resource_id in self._pods else EventType.ADDED
        )
        stored = self._stamp(pod)
        _LOGGER.debug("Storing pod %s (%s)", resource_id, event_type)
        self._pods[resource_id] = stored
        self._fire_event(WatchEvent(type=event_type, pod=stored))
        return stored

    def delete_pod(self, namespace: str, name: str) -> None:
        """Delete a pod, as an external actor would."""
        resource_id = NamedResource(kind=Pod.kind, namespace=namespace, name=name)
        if (pod := self._pods.pop(resource_id, None)) is None:
            raise ObjectNotFoundError(f"Pod {resource_id.namespaced_name} not found")
        self._fire_event(WatchEvent(type=EventType.DELETED, pod=pod))

    def close_watches(self) -> None:
        """End all open watch streams, as a dropped connection would."""
        for listener in list(self._listeners):
            listener(_CLOSED)

    @property
    def num_watches(self) -> int:
        """Return the number of open watch streams."""
        return len(self._listeners)

    def _stamp(self, pod: Pod) -> Pod:
        stamped = dataclasses.replace(pod, resource_version=str(next(self._versions)))
        return dataclasses.replace(stamped, doc=stamped.to_doc())

    def _fire_event(self, event: WatchEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    async def list_pods(self) -> list[Pod]:
        """List all pods in all namespaces."""
        return list(self._pods.values())

    async def get_pod(self, namespace: str, name: str) -> Pod:
        """Read the current state of a pod."""
        resource_id = NamedResource(kind=Pod.kind, namespace=namespace, name=name)
        if (pod := self._pods.get(resource_id)) is None:
            raise ObjectNotFoundError(f"Pod {resource_id.namespaced_name} not found")
        return pod

    async def update_pod(self, pod: Pod) -> Pod:
        """Replace the pod in its namespace and return the stored object."""
        resource_id = pod.resource_id
        if (existing := self._pods.get(resource_id)) is None:
            raise ObjectNotFoundError(f"Pod {resource_id.namespaced_name} not found")
        if (
            pod.resource_version is not None
            and pod.resource_version != existing.resource_version
        ):
            raise ResourceConflictError(
                resource_id.namespaced_name,
                f"version {pod.resource_version} is stale, "
                f"current is {existing.resource_version}",
            )
        stored = self._stamp(pod)
        self._pods[resource_id] = stored
        self._fire_event(WatchEvent(type=EventType.MODIFIED, pod=stored))
        return stored

    async def open_watch(self) -> AsyncGenerator[WatchEvent, None]:
        """Subscribe to pod changes in all namespaces.

        The listener is registered before returning so no change made after
        this call is missed, even before iteration starts.
        """
        queue: asyncio.Queue[WatchEvent | object] = asyncio.Queue()
        self._listeners.append(queue.put_nowait)
        return self._stream(queue)

    async def _stream(
        self, queue: asyncio.Queue[WatchEvent | object]
    ) -> AsyncGenerator[WatchEvent, None]:
        try:
            while True:
                event = await queue.get()
                if not isinstance(event, WatchEvent):
                    _LOGGER.debug("Watch stream closed")
                    return
                yield event
        finally:
            if queue.put_nowait in self._listeners:
                self._listeners.remove(queue.put_nowait)

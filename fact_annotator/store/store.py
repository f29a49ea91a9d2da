"""Store module for reading and updating pods in a cluster."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from fact_annotator.manifest import Pod


class EventType(StrEnum):
    """Kinds of events delivered by a watch stream."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    BOOKMARK = "BOOKMARK"
    ERROR = "ERROR"


@dataclass(frozen=True)
class WatchEvent:
    """A single change observed on the watch stream.

    The pod is None when the payload of the event was not a Pod object.
    """

    type: str
    pod: Pod | None = None
    raw: Any = None


class PodStore(ABC):
    """Abstract base class for the store of pods across all namespaces."""

    @abstractmethod
    async def list_pods(self) -> list[Pod]:
        """List all pods in all namespaces.

        Raises:
            StoreException: If the pods could not be listed.
        """

    @abstractmethod
    async def get_pod(self, namespace: str, name: str) -> Pod:
        """Read the current state of a pod.

        Raises:
            ObjectNotFoundError: If the pod does not exist.
            StoreException: If the pod could not be read.
        """

    @abstractmethod
    async def update_pod(self, pod: Pod) -> Pod:
        """Replace the pod in its namespace and return the stored object.

        The pod is submitted as a full object replace keyed by namespace and
        name.

        Raises:
            ObjectNotFoundError: If the pod no longer exists.
            ResourceConflictError: If the pod was modified since it was read.
            StoreException: If the update failed.
        """

    @abstractmethod
    async def open_watch(self) -> AsyncIterator[WatchEvent]:
        """Subscribe to pod changes in all namespaces.

        The subscription is established before this returns, so a failure to
        connect is raised here rather than while iterating.

        Returns:
            An asynchronous iterator of WatchEvent that ends when the stream
            is closed by the server.

        Raises:
            WatchException: If the subscription could not be established, or
                while iterating if the stream failed.
        """

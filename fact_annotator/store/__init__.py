"""
The store module provides access to the pods of a cluster for the
reconciliation loops.

- Uses NamedResource as the identity of every pod.
- Returns Pod dataclass instances from manifest.py, never client objects.
- Provides list, read, replace and watch APIs to the reconciler.

This abstract interface allows for various implementations (kubernetes, in-memory).
"""

from .store import PodStore, WatchEvent, EventType
from .in_memory import InMemoryPodStore
from .kube import KubernetesPodStore

__all__ = [
    "PodStore",
    "WatchEvent",
    "EventType",
    "InMemoryPodStore",
    "KubernetesPodStore",
]

"""Shared state handed to every reconciliation component."""

import asyncio
from dataclasses import dataclass, field

from fact_annotator.config import ReconcilerConfig
from fact_annotator.facts import FactSource
from fact_annotator.manifest import WorkItem
from fact_annotator.store import PodStore


@dataclass
class ReconcileContext:
    """The store, fact source and work queue shared by the components.

    The work queue is the only mutable state shared between the producers
    (watcher and sweeper) and the consumers (annotation workers). It is
    bounded, so producers wait for space when the workers fall behind.
    """

    store: PodStore
    fact_source: FactSource
    config: ReconcilerConfig = field(default_factory=ReconcilerConfig)
    queue: asyncio.Queue[WorkItem] = field(init=False)

    def __post_init__(self) -> None:
        self.queue = asyncio.Queue(maxsize=self.config.queue_size)

    @property
    def annotation_key(self) -> str:
        """The annotation marker written on each pod."""
        return self.config.annotation_key

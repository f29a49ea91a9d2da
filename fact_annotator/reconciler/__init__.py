"""The reconciler module.

This module provides the components that keep every running pod annotated:
a watcher and a resync sweeper feed a shared work queue that is drained by
the annotation worker pool, all coordinated by the ReconcileAgent.
"""

from .agent import ReconcileAgent
from .context import ReconcileContext
from .eligibility import is_eligible, enqueue_if_eligible
from .sweeper import ResyncSweeper
from .watcher import ResourceWatcher
from .worker import AnnotationWorkerPool

__all__ = [
    "ReconcileAgent",
    "ReconcileContext",
    "is_eligible",
    "enqueue_if_eligible",
    "ResyncSweeper",
    "ResourceWatcher",
    "AnnotationWorkerPool",
]

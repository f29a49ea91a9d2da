"""Eligibility check shared by the watcher and the resync sweeper.

The check runs on whatever copy of the pod the producer has at hand, so it
may be stale by the time a worker picks up the item. Workers repeat the
marker check on fresh data before writing.
"""

import logging

from fact_annotator.manifest import Pod, WorkItem

from .context import ReconcileContext

_LOGGER = logging.getLogger(__name__)


def is_eligible(pod: Pod, annotation_key: str) -> bool:
    """Return True if the pod is running and does not carry the marker yet."""
    return pod.running and annotation_key not in pod.annotations


async def enqueue_if_eligible(context: ReconcileContext, pod: Pod) -> bool:
    """Queue the pod for annotation if it is eligible.

    Waits for space in the queue when it is full.

    Returns:
        True if the pod was queued.
    """
    if not is_eligible(pod, context.annotation_key):
        return False
    _LOGGER.info("Queueing %s (phase %s) for annotation", pod.resource_id, pod.phase)
    await context.queue.put(WorkItem(pod))
    return True

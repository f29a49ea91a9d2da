"""Tests for the eligibility check."""

import pytest

from fact_annotator.config import ReconcilerConfig
from fact_annotator.facts import FactSource
from fact_annotator.manifest import Pod
from fact_annotator.reconciler import ReconcileContext, enqueue_if_eligible, is_eligible
from fact_annotator.store import InMemoryPodStore


@pytest.mark.parametrize(
    ("phase", "annotations", "expected"),
    [
        ("Running", {}, True),
        ("Running", {"app": "web"}, True),
        ("Running", {"cat-fact": "Cats purr."}, False),
        ("Running", {"cat-fact": ""}, False),
        ("Pending", {}, False),
        ("Succeeded", {}, False),
        (None, {}, False),
    ],
)
def test_is_eligible(
    phase: str | None, annotations: dict[str, str], expected: bool
) -> None:
    """Test only running pods without the marker are eligible."""
    pod = Pod(name="web", namespace="default", phase=phase, annotations=annotations)
    assert is_eligible(pod, "cat-fact") is expected


async def test_enqueue_if_eligible(store: InMemoryPodStore) -> None:
    """Test eligible pods are queued and others are not."""
    context = ReconcileContext(
        store=store, fact_source=FactSource(), config=ReconcilerConfig(queue_size=2)
    )
    running = Pod(name="web", namespace="default", phase="Running")
    pending = Pod(name="db", namespace="default", phase="Pending")

    assert await enqueue_if_eligible(context, running)
    assert not await enqueue_if_eligible(context, pending)
    assert context.queue.qsize() == 1
    assert context.queue.get_nowait().pod == running

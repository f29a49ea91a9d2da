"""Fixtures for the reconciler tests."""

import pytest

from fact_annotator.config import ReconcilerConfig
from fact_annotator.facts import FactSource
from fact_annotator.reconciler import ReconcileContext
from fact_annotator.store import InMemoryPodStore


@pytest.fixture
async def context(
    store: InMemoryPodStore,
    fact_source: FactSource,
    reconciler_config: ReconcilerConfig,
) -> ReconcileContext:
    """A reconcile context using the in memory store."""
    return ReconcileContext(
        store=store, fact_source=fact_source, config=reconciler_config
    )


@pytest.fixture
def fact_texts(fact_source: FactSource) -> set[str]:
    """The text of every fact in the corpus."""
    return {fact.text for fact in fact_source.facts}

"""Shared fixtures for fact-annotator tests."""

from collections.abc import Generator
import json
import logging
import pathlib
import random

import pytest

from fact_annotator.config import FactSourceConfig, ReconcilerConfig
from fact_annotator.facts import FactSource
from fact_annotator.store import InMemoryPodStore
from fact_annotator.task import task_service_context
from fact_annotator.task.service import TaskServiceImpl

_LOGGER = logging.getLogger(__name__)

CORPUS = [
    {"type": "cat", "text": "Cats sleep for 70% of their lives."},
    {"type": "cat", "text": "A group of cats is called a clowder."},
    {"type": "dog", "text": "Dogs have three eyelids."},
]


@pytest.fixture
def corpus_file(tmp_path: pathlib.Path) -> pathlib.Path:
    """A corpus of facts written to a local file."""
    path = tmp_path / "facts.json"
    path.write_text(json.dumps(CORPUS))
    return path


@pytest.fixture
async def fact_source(corpus_file: pathlib.Path) -> FactSource:
    """An initialized fact source with a fixed random seed."""
    source = FactSource(FactSourceConfig(url=str(corpus_file)), rng=random.Random(0))
    await source.initialize()
    return source


@pytest.fixture
def store() -> InMemoryPodStore:
    """An empty in memory pod store."""
    return InMemoryPodStore()


@pytest.fixture
def reconciler_config() -> ReconcilerConfig:
    """Reconciler configuration with short delays for tests."""
    return ReconcilerConfig(
        workers=2,
        queue_size=4,
        resync_interval=0.05,
        reconnect_backoff=0.01,
        reconnect_backoff_max=0.05,
        restart_delay=0.0,
    )


@pytest.fixture
def task_service() -> Generator[TaskServiceImpl, None, None]:
    """A task service scoped to the test."""
    service = TaskServiceImpl()
    with task_service_context(service):
        yield service

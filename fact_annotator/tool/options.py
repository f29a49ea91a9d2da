"""Library for common command line options."""

from argparse import ArgumentParser
import logging

from fact_annotator.config import AgentConfig
from fact_annotator.facts import FactSource
from fact_annotator.store import KubernetesPodStore

_LOGGER = logging.getLogger(__name__)


def add_cluster_flags(args: ArgumentParser) -> None:
    """Add flags for connecting to the cluster."""
    args.add_argument(
        "--kubeconfig",
        help="Path of the kubeconfig file (default from $KUBE_CONFIGS or ~/.kube/config)",
        default=None,
    )


def add_reconcile_flags(args: ArgumentParser) -> None:
    """Add flags for loading facts and annotating pods."""
    add_cluster_flags(args)
    args.add_argument(
        "--facts-url",
        help="Location of the fact corpus, an http(s) url or a local file "
        "(default from $CAT_FACTS_URL)",
        default=None,
    )
    args.add_argument(
        "--fact-category",
        help="Only use facts of this type (default from $FACT_CATEGORY)",
        default=None,
    )
    args.add_argument(
        "--annotation-key",
        help="Annotation marker written on each pod",
        default=None,
    )
    args.add_argument(
        "--workers",
        help="Number of concurrent annotation workers",
        type=int,
        default=None,
    )
    args.add_argument(
        "--queue-size",
        help="Capacity of the work queue",
        type=int,
        default=None,
    )


def build_config(  # type: ignore[no-untyped-def]
    kubeconfig: str | None = None,
    facts_url: str | None = None,
    fact_category: str | None = None,
    annotation_key: str | None = None,
    workers: int | None = None,
    queue_size: int | None = None,
    resync_interval: float | None = None,
    watch_reconnect: bool | None = None,
    port: int | None = None,
    **kwargs,  # pylint: disable=unused-argument
) -> AgentConfig:
    """Build the agent configuration from the environment and flags."""
    config = AgentConfig.from_env()
    if kubeconfig is not None:
        config.kubeconfig = kubeconfig
    if facts_url is not None:
        config.fact_source.url = facts_url
    if fact_category is not None:
        config.fact_source.category = fact_category
    if annotation_key is not None:
        config.reconciler.annotation_key = annotation_key
    if workers is not None:
        config.reconciler.workers = workers
    if queue_size is not None:
        config.reconciler.queue_size = queue_size
    if resync_interval is not None:
        config.reconciler.resync_interval = resync_interval
    if watch_reconnect is not None:
        config.reconciler.watch_reconnect = watch_reconnect
    if port is not None:
        config.listen_port = port
    _LOGGER.debug("Using configuration %s", config)
    return config


async def load_facts(config: AgentConfig) -> FactSource:
    """Create and initialize the fact source.

    Raises:
        FactSourceException: If the corpus could not be loaded.
    """
    fact_source = FactSource(config.fact_source)
    await fact_source.initialize()
    return fact_source


def connect_store(config: AgentConfig) -> KubernetesPodStore:
    """Connect to the cluster.

    Raises:
        ClusterException: If no usable cluster configuration was found.
    """
    return KubernetesPodStore.connect(config.kubeconfig)

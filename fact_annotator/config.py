"""Configuration objects for fact-annotator.

Defaults may be overridden from the process environment with
`AgentConfig.from_env` and from command line flags by the tool.
"""

from dataclasses import dataclass, field
import os
from typing import Mapping

from .exceptions import InputException

__all__ = [
    "FactSourceConfig",
    "ReconcilerConfig",
    "AgentConfig",
]

DEFAULT_FACTS_URL = "http://cat-fact.herokuapp.com/facts"
DEFAULT_KUBECONFIG = "~/.kube/config"
DEFAULT_ANNOTATION_KEY = "cat-fact"

FACTS_URL_ENV = "CAT_FACTS_URL"
KUBECONFIG_ENV = "KUBE_CONFIGS"
FACT_CATEGORY_ENV = "FACT_CATEGORY"
LISTEN_PORT_ENV = "LISTEN_PORT"


@dataclass
class FactSourceConfig:
    """Configuration for loading the fact corpus."""

    url: str = DEFAULT_FACTS_URL
    """Location of the corpus: an http(s) URL, a file:// URL or a local path."""

    timeout: float = 5.0
    """Timeout in seconds for fetching the corpus."""

    category: str | None = None
    """When set, only facts of this type are kept."""


@dataclass
class ReconcilerConfig:
    """Configuration for the reconciliation loops and worker pool."""

    annotation_key: str = DEFAULT_ANNOTATION_KEY
    """The annotation marker written on each pod."""

    workers: int = 3
    """Number of concurrent annotation workers."""

    queue_size: int = 10
    """Capacity of the work queue; producers block when it is full."""

    resync_interval: float = 10.0
    """Seconds between full resync sweeps."""

    watch_reconnect: bool = True
    """Reopen the watch stream when it ends or fails after being established."""

    reconnect_backoff: float = 1.0
    """Initial delay in seconds before reopening a dropped watch stream."""

    reconnect_backoff_max: float = 60.0
    """Upper bound for the reconnect delay."""

    restart_delay: float = 1.0
    """Delay in seconds before a crashed worker is restarted."""

    max_restarts: int = 5
    """Restarts allowed within `restart_window` before a worker is abandoned."""

    restart_window: float = 60.0
    """Window in seconds used to count worker restarts."""


@dataclass
class AgentConfig:
    """Top level configuration for the agent process."""

    fact_source: FactSourceConfig = field(default_factory=FactSourceConfig)
    reconciler: ReconcilerConfig = field(default_factory=ReconcilerConfig)

    kubeconfig: str = DEFAULT_KUBECONFIG
    """Path of the kubeconfig file; in-cluster config is used if it is absent."""

    listen_host: str = "0.0.0.0"
    listen_port: int = 8080

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AgentConfig":
        """Build the configuration, overriding defaults from the environment."""
        env = os.environ if environ is None else environ
        config = cls(
            fact_source=FactSourceConfig(
                url=env.get(FACTS_URL_ENV, DEFAULT_FACTS_URL),
                category=env.get(FACT_CATEGORY_ENV) or None,
            ),
            kubeconfig=env.get(KUBECONFIG_ENV, DEFAULT_KUBECONFIG),
        )
        if port := env.get(LISTEN_PORT_ENV):
            try:
                config.listen_port = int(port)
            except ValueError as err:
                raise InputException(f"Invalid {LISTEN_PORT_ENV}: {port!r}") from err
        return config

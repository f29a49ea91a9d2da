"""Pod store backed by a kubernetes cluster.

The official kubernetes client is synchronous, so every call is run in a
worker thread with `asyncio.to_thread` to keep the event loop responsive.
The watch stream is opened list-then-watch: a list call establishes the
connection and the resource version the watch resumes from. Watch reads
are bounded by a read timeout, after which the watch is resumed from the
last seen resource version, so a cancelled stream never leaves a thread
blocked on an idle connection.
"""

import asyncio
from collections.abc import AsyncGenerator, Iterator
import logging
from pathlib import Path
from typing import Any

from kubernetes import client, config, watch
from kubernetes.client import ApiException
import urllib3

from fact_annotator.manifest import Pod
from fact_annotator.exceptions import (
    ClusterException,
    InputException,
    ObjectNotFoundError,
    ResourceConflictError,
    StoreException,
    WatchException,
)

from .store import PodStore, WatchEvent, EventType

__all__ = [
    "KubernetesPodStore",
]

_LOGGER = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (ApiException, urllib3.exceptions.HTTPError)

DEFAULT_WATCH_TIMEOUT_SECONDS = 300
DEFAULT_READ_TIMEOUT = 10.0
CONNECT_TIMEOUT = 10.0


def _store_error(err: Exception, name: str, action: str) -> StoreException:
    """Translate a client error into the store exception hierarchy."""
    if isinstance(err, ApiException):
        if err.status == 404:
            return ObjectNotFoundError(f"Pod {name} not found")
        if err.status == 409:
            return ResourceConflictError(name, err.reason)
        return StoreException(f"Failed to {action} pod {name}: {err.status} {err.reason}")
    return StoreException(f"Failed to {action} pod {name}: {err}")


def _resource_version(raw: Any) -> str | None:
    """Return the resourceVersion of a watch event payload, if it has one."""
    if not isinstance(raw, dict):
        return None
    return (raw.get("metadata") or {}).get("resourceVersion")


class KubernetesPodStore(PodStore):
    """PodStore implementation using the kubernetes CoreV1 API."""

    def __init__(
        self,
        core_api: client.CoreV1Api,
        watch_timeout_seconds: int = DEFAULT_WATCH_TIMEOUT_SECONDS,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
    ) -> None:
        """Initialize the KubernetesPodStore.

        Args:
            core_api: The client used for all pod calls.
            watch_timeout_seconds: Server side timeout for each watch request,
                after which the watch is resumed with a new request.
            read_timeout: Longest time a watch read may block. The watch is
                resumed with a new request when no data arrives in time, and
                the reading thread exits within this time after the stream
                is closed.
        """
        self._core = core_api
        self._watch_timeout_seconds = watch_timeout_seconds
        self._read_timeout = read_timeout

    @classmethod
    def connect(cls, kubeconfig: str | None = None) -> "KubernetesPodStore":
        """Create a store for the cluster described by the kubeconfig.

        The in-cluster service account configuration is used when no
        kubeconfig file exists at the given location.

        Raises:
            ClusterException: If no usable cluster configuration was found.
        """
        api_client = client.ApiClient(configuration=cls._load_config(kubeconfig))
        return cls(client.CoreV1Api(api_client))

    @staticmethod
    def _load_config(kubeconfig: str | None) -> client.Configuration:
        configuration = client.Configuration()
        if kubeconfig and (path := Path(kubeconfig).expanduser()).exists():
            try:
                config.load_kube_config(
                    config_file=str(path), client_configuration=configuration
                )
            except (config.ConfigException, OSError, ValueError) as err:
                raise ClusterException(
                    f"Failed to load kubernetes configuration {path}: {err}"
                ) from err
            _LOGGER.info("Loaded kubernetes configuration from %s", path)
            return configuration
        try:
            config.load_incluster_config(client_configuration=configuration)
        except config.ConfigException as err:
            raise ClusterException(
                f"No kubernetes configuration at {kubeconfig} and not running "
                f"in a cluster: {err}"
            ) from err
        _LOGGER.info("Loaded in-cluster kubernetes configuration")
        return configuration

    def _to_pod(self, obj: Any) -> Pod:
        if not isinstance(obj, dict):
            obj = self._core.api_client.sanitize_for_serialization(obj)
        return Pod.parse_doc(obj)

    async def list_pods(self) -> list[Pod]:
        """List all pods in all namespaces."""
        try:
            pod_list = await asyncio.to_thread(self._core.list_pod_for_all_namespaces)
        except _TRANSPORT_ERRORS as err:
            raise _store_error(err, "*", "list") from err
        pods = []
        for item in pod_list.items:
            try:
                pods.append(self._to_pod(item))
            except InputException as err:
                _LOGGER.warning("Skipping unexpected object in pod list: %s", err)
        return pods

    async def get_pod(self, namespace: str, name: str) -> Pod:
        """Read the current state of a pod."""
        try:
            obj = await asyncio.to_thread(self._core.read_namespaced_pod, name, namespace)
        except _TRANSPORT_ERRORS as err:
            raise _store_error(err, f"{namespace}/{name}", "read") from err
        return self._to_pod(obj)

    async def update_pod(self, pod: Pod) -> Pod:
        """Replace the pod in its namespace and return the stored object."""
        try:
            obj = await asyncio.to_thread(
                self._core.replace_namespaced_pod,
                pod.name,
                pod.namespace,
                pod.to_doc(),
            )
        except _TRANSPORT_ERRORS as err:
            raise _store_error(err, pod.namespaced_name, "update") from err
        return self._to_pod(obj)

    async def open_watch(self) -> AsyncGenerator[WatchEvent, None]:
        """Subscribe to pod changes in all namespaces."""
        try:
            pod_list = await asyncio.to_thread(
                self._core.list_pod_for_all_namespaces, limit=1
            )
        except _TRANSPORT_ERRORS as err:
            raise WatchException(f"Unable to establish pod watch: {err}") from err
        resource_version = pod_list.metadata.resource_version
        _LOGGER.info("Starting pod watch from resourceVersion %s", resource_version)
        return self._stream(resource_version)

    async def _stream(
        self, resource_version: str | None
    ) -> AsyncGenerator[WatchEvent, None]:
        watcher = watch.Watch()
        try:
            while True:
                stream: Iterator[dict[str, Any]] = watcher.stream(
                    self._core.list_pod_for_all_namespaces,
                    resource_version=resource_version,
                    allow_watch_bookmarks=True,
                    timeout_seconds=self._watch_timeout_seconds,
                    _request_timeout=(CONNECT_TIMEOUT, self._read_timeout),
                )
                while True:
                    try:
                        event = await asyncio.to_thread(next, stream, None)
                    except urllib3.exceptions.ReadTimeoutError:
                        _LOGGER.debug(
                            "No pod watch data for %.0fs, resuming", self._read_timeout
                        )
                        break
                    except _TRANSPORT_ERRORS as err:
                        raise WatchException(f"Pod watch failed: {err}") from err
                    if event is None:
                        _LOGGER.debug("Pod watch request timed out, resuming")
                        break
                    watch_event = self._parse_event(event)
                    resource_version = (
                        _resource_version(watch_event.raw) or resource_version
                    )
                    yield watch_event
                _LOGGER.debug(
                    "Resuming pod watch from resourceVersion %s", resource_version
                )
        finally:
            watcher.stop()

    def _parse_event(self, event: dict[str, Any]) -> WatchEvent:
        event_type = event.get("type", "")
        raw = event.get("raw_object", event.get("object"))
        if event_type == EventType.ERROR:
            return WatchEvent(type=event_type, raw=raw)
        try:
            pod = self._to_pod(raw)
        except InputException as err:
            _LOGGER.debug("Watch event payload is not a pod: %s", err)
            return WatchEvent(type=event_type, raw=raw)
        return WatchEvent(type=event_type, pod=pod, raw=raw)

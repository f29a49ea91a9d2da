"""Representation of the objects the agent reads and writes.

Pods are parsed from the raw Kubernetes object documents returned by the
cluster and keep that document around so an update can be submitted as a
full object replace. Facts are decoded from the corpus payload.
"""

import copy
from dataclasses import dataclass, field
import dataclasses
import logging
from typing import Any, ClassVar

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import MissingField, InvalidFieldValue

from .exceptions import InputException

__all__ = [
    "NamedResource",
    "Pod",
    "Fact",
    "WorkItem",
    "parse_facts",
]

_LOGGER = logging.getLogger(__name__)


POD_KIND = "Pod"
POD_API_VERSION = "v1"
RUNNING_PHASE = "Running"


@dataclass(frozen=True)
class BaseManifest(DataClassDictMixin):
    """Base class for all manifest objects."""

    class Config(BaseConfig):
        omit_none = True


@dataclass(frozen=True, order=True)
class NamedResource:
    """Identifier for a kubernetes resource."""

    kind: str
    namespace: str | None
    name: str

    @property
    def namespaced_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def __str__(self) -> str:
        """Return the kind and namespaced name concatenated as an id."""
        return f"{self.kind}/{self.namespaced_name}"


@dataclass(frozen=True)
class Pod(BaseManifest):
    """A representation of a kubernetes Pod."""

    kind: ClassVar[str] = POD_KIND
    """The kind of the object."""

    name: str
    """The name of the Pod."""

    namespace: str
    """The namespace that owns the Pod."""

    phase: str | None = None
    """The status phase of the Pod e.g. Pending, Running."""

    annotations: dict[str, str] = field(default_factory=dict)
    """The annotations on the Pod metadata."""

    resource_version: str | None = None
    """The version of the object the Pod was read at."""

    doc: dict[str, Any] = field(
        default_factory=dict,
        compare=False,
        repr=False,
        metadata={"serialize": "omit"},
    )
    """The raw object document the Pod was parsed from."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "Pod":
        """Parse a Pod from a kubernetes resource object."""
        if not isinstance(doc, dict):
            raise InputException(f"Invalid {cls.kind} object: {doc!r}")
        if (kind := doc.get("kind")) is not None and kind != POD_KIND:
            raise InputException(f"Invalid object expected '{POD_KIND}': {kind}")
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid {cls.kind} missing metadata: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid {cls.kind} missing metadata.name: {doc}")
        if not (namespace := metadata.get("namespace")):
            raise InputException(
                f"Invalid {cls.kind} missing metadata.namespace: {doc}"
            )
        status = doc.get("status") or {}
        return cls(
            name=name,
            namespace=namespace,
            phase=status.get("phase"),
            annotations=dict(metadata.get("annotations") or {}),
            resource_version=metadata.get("resourceVersion"),
            doc=doc,
        )

    @property
    def resource_id(self) -> NamedResource:
        """Identifier for the Pod."""
        return NamedResource(kind=POD_KIND, namespace=self.namespace, name=self.name)

    @property
    def namespaced_name(self) -> str:
        """Return the namespace and name concatenated as an id."""
        return f"{self.namespace}/{self.name}"

    @property
    def running(self) -> bool:
        """Return True if the Pod is in the Running phase."""
        return self.phase == RUNNING_PHASE

    def to_doc(self) -> dict[str, Any]:
        """Return a copy of the object document reflecting this Pod.

        The copy is safe to mutate; the document held by this Pod is unchanged.
        """
        doc = copy.deepcopy(self.doc)
        doc.setdefault("apiVersion", POD_API_VERSION)
        doc.setdefault("kind", POD_KIND)
        metadata = doc.setdefault("metadata", {})
        metadata["name"] = self.name
        metadata["namespace"] = self.namespace
        metadata["annotations"] = dict(self.annotations)
        if self.resource_version is not None:
            metadata["resourceVersion"] = self.resource_version
        else:
            metadata.pop("resourceVersion", None)
        if self.phase is not None:
            doc.setdefault("status", {})["phase"] = self.phase
        return doc

    def with_annotation(self, key: str, value: str) -> "Pod":
        """Return a new Pod with the annotation set, leaving this one untouched."""
        annotations = dict(self.annotations)
        annotations[key] = value
        updated = dataclasses.replace(self, annotations=annotations)
        return dataclasses.replace(updated, doc=updated.to_doc())


@dataclass(frozen=True)
class Fact(BaseManifest):
    """A single entry of the fact corpus."""

    text: str
    """The text written as the annotation value."""

    category: str = field(metadata=field_options(alias="type"), default="")
    """The type of the fact e.g. cat."""


def parse_facts(payload: Any) -> list[Fact]:
    """Decode the facts from a json decoded corpus payload.

    The payload is either a list of fact objects or an object holding the list
    under the `all` key.
    """
    if isinstance(payload, dict) and "all" in payload:
        payload = payload["all"]
    if not isinstance(payload, list):
        raise InputException(
            f"Invalid fact corpus, expected a list but got {type(payload).__name__}"
        )
    facts = []
    for item in payload:
        if not isinstance(item, dict):
            raise InputException(f"Invalid fact entry: {item!r}")
        try:
            facts.append(Fact.from_dict(item))
        except (MissingField, InvalidFieldValue) as err:
            raise InputException(f"Invalid fact entry {item!r}: {err}") from err
    _LOGGER.debug("Parsed %d facts", len(facts))
    return facts


@dataclass(frozen=True)
class WorkItem:
    """A reference to a Pod queued for a possible annotation."""

    pod: Pod

    @property
    def resource_id(self) -> NamedResource:
        """Identifier for the referenced Pod."""
        return self.pod.resource_id

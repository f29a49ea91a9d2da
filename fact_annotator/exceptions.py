"""Exceptions related to fact-annotator."""

__all__ = [
    "AnnotatorException",
    "InputException",
    "FactSourceException",
    "ClusterException",
    "StoreException",
    "ObjectNotFoundError",
    "ResourceConflictError",
    "WatchException",
    "WorkerException",
]


class AnnotatorException(Exception):
    """Generic base exception used for this library."""


class InputException(AnnotatorException):
    """Raised when an object or payload is not formatted as expected."""


class FactSourceException(AnnotatorException):
    """Raised when the fact corpus cannot be loaded or is not usable."""


class ClusterException(AnnotatorException):
    """Raised when the cluster configuration cannot be loaded or connected."""


class StoreException(AnnotatorException):
    """Raised when a call against the resource store fails."""


class ObjectNotFoundError(StoreException):
    """Raised when an object is not found in the store."""


class ResourceConflictError(StoreException):
    """Raised when an update was made against a stale version of an object."""

    def __init__(self, resource_name: str, message: str | None = None) -> None:
        super().__init__(
            f"Resource {resource_name} was modified concurrently: "
            f"{message or 'version conflict'}"
        )
        self.resource_name = resource_name
        self.message = message


class WatchException(StoreException):
    """Raised when the change stream cannot be established or was dropped."""


class WorkerException(AnnotatorException):
    """Raised when no annotation worker is left to process queued pods."""

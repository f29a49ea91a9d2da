"""
fact-annotator is a background agent that annotates running pods in a
Kubernetes cluster with a fact drawn from an external corpus.

Each `Running` pod is enriched exactly once: a live watch stream and a
periodic resync sweep both feed a bounded work queue, and a pool of workers
performs a read-check-write cycle against the cluster for every queued pod.
"""

__all__ = [
    "manifest",
    "facts",
    "store",
    "reconciler",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]

"""Fact-annotator get action."""

from argparse import (
    ArgumentParser,
    BooleanOptionalAction,
    _SubParsersAction as SubParsersAction,
)
import logging
from typing import Any, cast

from fact_annotator.config import DEFAULT_ANNOTATION_KEY
from fact_annotator.manifest import Pod

from . import options
from .format import FORMATTERS

_LOGGER = logging.getLogger(__name__)


def pod_summary(pod: Pod, annotation_key: str) -> dict[str, Any]:
    """Return the fields printed for a pod."""
    return {
        "namespace": pod.namespace,
        "name": pod.name,
        "phase": pod.phase or "",
        "annotation": pod.annotations.get(annotation_key, ""),
    }


class GetAction:
    """Print the annotation state of pods in the cluster."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "get",
                help="Print the annotation of pods in the cluster",
                description="Print the phase and annotation of pods in all namespaces",
            ),
        )
        options.add_cluster_flags(args)
        args.add_argument(
            "--annotation-key",
            help="Annotation marker to print",
            default=DEFAULT_ANNOTATION_KEY,
        )
        args.add_argument(
            "--running",
            action=BooleanOptionalAction,
            default=False,
            help="Only print pods in the Running phase",
        )
        args.add_argument(
            "--output",
            "-o",
            choices=list(FORMATTERS),
            default="table",
            help="Output format of the command",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        annotation_key: str,
        running: bool,
        output: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        config = options.build_config(**kwargs)
        store = options.connect_store(config)
        pods = await store.list_pods()
        if running:
            pods = [pod for pod in pods if pod.running]
        results = [
            pod_summary(pod, annotation_key)
            for pod in sorted(pods, key=lambda pod: pod.resource_id)
        ]
        if not results and output == "table":
            print("no pods found")
            return
        FORMATTERS[output]().print(results)

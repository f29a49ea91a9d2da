"""Fact-annotator sweep action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
from typing import cast

from fact_annotator.reconciler import ReconcileAgent

from . import options

_LOGGER = logging.getLogger(__name__)


class SweepAction:
    """Annotate all eligible pods once and exit."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "sweep",
                help="Annotate all running pods once and exit",
                description="""Lists pods in all namespaces once, annotates every
                    running pod without the annotation and waits for all
                    updates to complete.""",
            ),
        )
        options.add_reconcile_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        config = options.build_config(**kwargs)
        fact_source = await options.load_facts(config)
        store = options.connect_store(config)
        agent = ReconcileAgent(store, fact_source, config.reconciler)
        queued = await agent.run_once()
        print(f"Queued {queued} pods for annotation")

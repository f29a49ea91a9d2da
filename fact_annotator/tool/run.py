"""Fact-annotator run action."""

from argparse import (
    ArgumentParser,
    BooleanOptionalAction,
    _SubParsersAction as SubParsersAction,
)
import logging
from typing import cast

from fact_annotator.health import create_app, create_server
from fact_annotator.reconciler import ReconcileAgent

from . import options

_LOGGER = logging.getLogger(__name__)


class RunAction:
    """Run the agent until the process is terminated."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "run",
                help="Watch the cluster and annotate running pods",
                description="""Watches pods in all namespaces and annotates every
                    running pod once with a fact. A periodic resync sweep queues
                    pods the watch may have missed. A liveness endpoint is served
                    on /healthz until the process is terminated.""",
            ),
        )
        options.add_reconcile_flags(args)
        args.add_argument(
            "--resync-interval",
            help="Seconds between full resync sweeps",
            type=float,
            default=None,
        )
        args.add_argument(
            "--watch-reconnect",
            action=BooleanOptionalAction,
            default=None,
            help="Reopen the watch stream when it is dropped",
        )
        args.add_argument(
            "--port",
            help="Port for the liveness endpoint (default from $LISTEN_PORT or 8080)",
            type=int,
            default=None,
        )
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
        await agent.start()
        server = create_server(
            create_app(lambda: agent.healthy), config.listen_host, config.listen_port
        )
        _LOGGER.info(
            "Serving liveness on %s:%d", config.listen_host, config.listen_port
        )
        try:
            await server.serve()
        finally:
            await agent.stop()

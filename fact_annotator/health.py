"""Liveness endpoint for the agent process.

The listener keeps the process observable by external health probes; it
carries no application routes.
"""

from collections.abc import Callable
import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse
import uvicorn

__all__ = [
    "create_app",
    "create_server",
]

_LOGGER = logging.getLogger(__name__)


def create_app(health_check: Callable[[], bool]) -> FastAPI:
    """Create the liveness application.

    Args:
        health_check: Called on every probe, returns True when healthy.
    """
    app = FastAPI(
        title="fact-annotator", docs_url=None, redoc_url=None, openapi_url=None
    )

    @app.get("/healthz")
    async def healthz() -> JSONResponse:
        if health_check():
            return JSONResponse({"status": "ok"})
        _LOGGER.warning("Liveness probe reported unhealthy")
        return JSONResponse({"status": "unhealthy"}, status_code=503)

    return app


def create_server(app: FastAPI, host: str, port: int) -> uvicorn.Server:
    """Create a server for the app that runs inside the current event loop."""
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="warning",
        access_log=False,
    )
    return uvicorn.Server(config)

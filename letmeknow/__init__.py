# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
from contextlib import asynccontextmanager

from fastapi import FastAPI

from letmeknow.logging import logger
from letmeknow.managers.client_registry import client_registry
from letmeknow.routing import collect_subrouters
from letmeknow.settings import app_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for startup and shutdown.

    The relay keeps no persistent state, so startup and shutdown only log.
    Open connections are closed by the server; the client registry is
    dropped with the process.
    """
    logger.info(
        f"Starting server on {app_settings.host}:{app_settings.port} "
        f"(websocket path {app_settings.WS_PATH})"
    )

    yield

    connected, registered = await client_registry.counts()
    logger.info(
        f"Application shutdown with {connected} connected client(s), "
        f"{registered} registered"
    )


def application() -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    Includes the routers collected by `letmeknow.routing.collect_subrouters()`:
    the health and metrics HTTP endpoints and the relay WebSocket endpoint.

    There is no authentication middleware and no origin check; every
    client that completes the upgrade is accepted.
    """
    app = FastAPI(
        title="letmeknow",
        description="Real-time notification relay",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(collect_subrouters())

    return app


app = application()  # Need for fastapi cli

# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
import os
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relay.logging import logger
from relay.routing import collect_subrouters
from relay.settings import app_settings

__version__ = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application startup and shutdown.

    Room state lives only in process memory; on shutdown it is reported
    and dropped, nothing is persisted.
    """
    from relay.managers.room_store import room_store
    from relay.utils.metrics import app_info

    logger.info("Application startup initiated")
    app_info.labels(
        version=__version__,
        python_version=f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        environment=app_settings.ENV.value,
    ).set(1)
    logger.info(f"Accepting relay sessions on {app_settings.WS_PATH}")

    yield

    logger.info(
        f"Application shutdown initiated, dropping {room_store.room_count()} "
        f"rooms with {room_store.member_count()} members"
    )
    room_store.clear()
    logger.info("Application shutdown complete")


def mount_static_bundle(app: FastAPI) -> None:
    """
    Serve the pre-built editor from STATIC_DIR, if it exists.

    Mounted at ``/`` after every router, so API and WebSocket routes take
    precedence over files of the bundle.
    """
    from relay.utils.static_files import SPAStaticFiles

    if not os.path.isdir(app_settings.STATIC_DIR):
        logger.debug(
            f"Static directory {app_settings.STATIC_DIR!r} not found, "
            f"editor bundle not served"
        )
        return

    app.mount(
        "/",
        SPAStaticFiles(directory=app_settings.STATIC_DIR, html=True),
        name="editor",
    )
    logger.info(f"Serving editor bundle from {app_settings.STATIC_DIR}")


def application() -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    - Includes the HTTP routers (health, metrics) and the session WebSocket
      consumer collected by ``collect_subrouters()``
    - Adds CORS middleware for the HTTP routes
    - Mounts the editor bundle when STATIC_DIR exists
    """
    app = FastAPI(
        title="Session relay",
        description="Multi-user session relay for the 3D editor",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(collect_subrouters())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.ALLOWED_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    mount_static_bundle(app)

    return app


app = application()  # Need for fastapi cli

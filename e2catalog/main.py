from contextlib import asynccontextmanager
import logging
import sys

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from e2catalog import __version__
from e2catalog.config import CustomSettings, get_settings, setup_logging
from e2catalog.dependencies import build_container
from e2catalog.services.enigma2_client import UpstreamError
from e2catalog.utils.logging_helpers import log_section_end, log_section_start

from e2catalog.routers import main_router


logger = logging.getLogger(__name__)


def create_app(
    settings: CustomSettings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
    preload_on_startup: bool = True
) -> FastAPI:
    """
    Create the addon application

    Args:
        settings: Loaded settings (read from the environment when omitted)
        http_client: Optional client for receiver requests
        preload_on_startup: Warm bouquets and picons before serving

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events"""
        logger.info("Starting Enigma2 catalog addon...")

        container = build_container(settings or get_settings(), http_client=http_client)
        app.state.container = container

        if preload_on_startup:
            log_section_start(logger, "startup warm-up")
            try:
                logger.info("Loading bouquets...")
                await container.bouquets.list_bouquets()

                logger.info("Preloading all channels and logos...")
                await container.preloader.preload_all()

                logger.info("Creating manifest...")
                container.manifest = await container.catalog.build_manifest()
            except UpstreamError as e:
                logger.error(f"Receiver unavailable at startup, serving without preloaded data: {e}")
            log_section_end(logger, "startup warm-up")

        container.scheduler.start()

        logger.info("Enigma2 catalog addon started successfully")

        yield

        logger.info("Shutting down Enigma2 catalog addon...")
        try:
            await container.aclose()
        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)
        logger.info("Enigma2 catalog addon stopped")

    app = FastAPI(
        title="Enigma2 Catalog",
        version=__version__,
        lifespan=lifespan
    )

    # Catalog clients load addons cross-origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.include_router(main_router)

    return app


def run() -> None:
    """Console entry point: load settings, then serve."""
    setup_logging()

    try:
        settings = get_settings()
    except ValidationError as e:
        logger.critical(f"CRITICAL ERROR: invalid configuration: {e}")
        sys.exit(1)

    logging.getLogger().setLevel(settings.log_level)

    uvicorn.run(
        create_app(settings),
        host=settings.addon_host,
        port=settings.addon_port,
        log_config=None,
    )
    logger.info(f"Addon stopped (was listening on port {settings.addon_port})")


if __name__ == "__main__":
    run()

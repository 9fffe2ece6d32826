import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

import aiohttp
from fastapi import FastAPI

from roomlink._version import __version__
from roomlink.config.app_settings import app_config
from roomlink.directory.browser import RoomBrowser
from roomlink.directory.catalog import ServerCatalog
from roomlink.directory.join import JoinDirectClient
from roomlink.directory.rooms_api import RoomDirectoryClient
from roomlink.rest.routes import browser_router, join_router
from roomlink.rest.routes import router as servers_router
from roomlink.util.logging_helper import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log_level = getattr(logging, app_config.logging.level.upper(), logging.INFO)
    setup_logging(level=log_level, debug_modules=app_config.logging.debug_modules)
    logger.info("Application startup...")

    # Fails fast on an empty catalog or a bad join key
    catalog = ServerCatalog.from_settings(app_config)

    http_session = aiohttp.ClientSession()
    directory_client = RoomDirectoryClient(catalog, session=http_session)

    app.state.catalog = catalog
    app.state.directory_client = directory_client
    app.state.join_client = JoinDirectClient(app_config.join_direct, app_config.features)
    app.state.browser = RoomBrowser(directory_client, catalog)

    refresh_task = None
    if app_config.features.game_servers:
        logger.info(
            "Refreshing rooms for '%s' every %.0fs",
            app.state.browser.selected_server_id,
            app_config.rooms_refresh_interval,
        )
        refresh_task = asyncio.create_task(app.state.browser.run_auto_refresh(app_config.rooms_refresh_interval))

    yield

    # Shutdown
    logger.info("Application shutdown...")
    if refresh_task:
        refresh_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await refresh_task
    await http_session.close()


# Create the main FastAPI application
app = FastAPI(
    title="Room Link",
    description="Game room directory browser and direct-join handoff for the launcher.",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(servers_router, prefix="/api/rest")
app.include_router(join_router, prefix="/api/rest")
app.include_router(browser_router, prefix="/api/rest")


@app.get("/health")
async def health_check():
    return {"status": "healthy"}

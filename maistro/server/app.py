import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.routing import APIRouter
from fastapi.staticfiles import StaticFiles
from loguru import logger

from maistro.server.log import setup_logging
from maistro.server.services import create_services
from maistro.server.settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # -- Startup ---------------------------------------------------------------
    settings = get_settings()
    setup_logging(settings.effective_log_level)

    logger.info("Maistro starting (host={}, port={})", settings.host, settings.port)
    logger.info("Data directory: {}", settings.data_path)

    services = create_services(settings)
    await services.load()
    _app.state.services = services
    logger.info("Agent CLI: {}", services.coordinator.executable)

    # -- Crontab ---------------------------------------------------------------
    if services.crontab.enabled:
        await services.crontab.sync_all(await services.configs.list_configs())
        logger.info("Crontab: schedules synced")

    yield

    # -- Shutdown --------------------------------------------------------------
    registry = services.registry
    logger.info("Maistro shutting down (active_executions={})", registry.active_count)

    # 1. Stop accepting new executions.
    registry.begin_shutdown()

    # 2. Wait for active executions to complete naturally.
    if registry.active_count > 0:
        timeout = settings.graceful_shutdown_timeout
        logger.info("Waiting for {} active executions to finish (timeout={}s)...", registry.active_count, timeout)
        drained = await registry.wait_until_drained(timeout=timeout)
        if not drained:
            # Last resort: cancel the remaining runs; their processes are killed.
            cancelled = await services.coordinator.cancel_all()
            logger.warning("Cancelled {} executions after timeout", cancelled)


app = FastAPI(title="Maistro", lifespan=lifespan)

# ---------------------------------------------------------------------------
# API router -- all HTTP endpoints live under /api
# ---------------------------------------------------------------------------
api = APIRouter(prefix="/api")


@api.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


from maistro.server.routers.configs import router as configs_router  # noqa: E402
from maistro.server.routers.mcp_servers import router as mcp_servers_router  # noqa: E402
from maistro.server.routers.models import router as models_router  # noqa: E402
from maistro.server.routers.runs import router as runs_router  # noqa: E402
from maistro.server.routers.streams import router as streams_router  # noqa: E402

api.include_router(configs_router)
api.include_router(mcp_servers_router)
api.include_router(models_router)
api.include_router(runs_router)

app.include_router(api)
app.include_router(streams_router)

# ---------------------------------------------------------------------------
# Static UI serving
# Resolved relative to CWD.  Override with MAISTRO_UI_DIR if needed.
# ---------------------------------------------------------------------------
_UI_DIR = Path(os.getenv("MAISTRO_UI_DIR", "public"))

if _UI_DIR.is_dir():
    app.mount("/", StaticFiles(directory=_UI_DIR, html=True), name="ui")

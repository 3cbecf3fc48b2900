"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from clipforge import __version__
from clipforge.api.routes import health, tasks, units
from clipforge.config import settings
from clipforge.logging import get_logger, setup_logging
from clipforge.services.coordinator import PipelineCoordinator
from clipforge.services.materializer import ResultMaterializer
from clipforge.services.poller import Poller
from clipforge.services.prompt_writer import PromptWriter
from clipforge.services.providers import get_generation_provider, get_llm_provider
from clipforge.services.task_store import TaskStore

# Setup logging
setup_logging()
logger = get_logger(__name__)


def build_coordinator(store: TaskStore | None = None) -> PipelineCoordinator:
    """Wire the pipeline from configuration."""
    store = store or TaskStore()
    provider = get_generation_provider()
    materializer = ResultMaterializer(store)
    poller = Poller(provider, store, materializer)
    return PipelineCoordinator(
        store=store,
        provider=provider,
        writer=PromptWriter(get_llm_provider()),
        poller=poller,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("application_starting", version=__version__)

    # Startup: verify database connection
    try:
        from clipforge.db.session import init_db

        init_db(create_tables=settings.database_url.startswith("sqlite"))
        logger.info("database_connected")
    except Exception as e:
        logger.error("database_connection_failed", error=str(e))
        # Don't raise - let health checks report the issue

    if getattr(app.state, "coordinator", None) is None:
        app.state.coordinator = build_coordinator()
    coordinator: PipelineCoordinator = app.state.coordinator

    try:
        await coordinator.resume_active()
    except Exception as e:
        logger.error("poll_resume_failed", error=str(e))

    yield

    # Shutdown: stop timers before the loop goes away
    logger.info("application_shutting_down")
    await coordinator.poller.shutdown()


# Create FastAPI app
app = FastAPI(
    title="clipforge",
    description="Staged AI video ad generation: situation, prompt, video, character, next clip",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health.router)
app.include_router(units.router, prefix="/api/v1")
app.include_router(tasks.router, prefix="/api/v1")

# Materialized videos
Path(settings.media_root).mkdir(parents=True, exist_ok=True)
app.mount(
    settings.media_url_prefix,
    StaticFiles(directory=settings.media_root),
    name="media",
)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Root endpoint redirect to docs."""
    return {
        "name": "clipforge",
        "version": __version__,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "clipforge.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )

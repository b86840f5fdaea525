"""Main FastAPI application for the device relay."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .context import build_context
from .database import close_db, init_db
from .errors import RelayError
from .events import Topic, build_event_bus
from .routers import callable_router, devices_router, hooks_router, notifications_router
from .services.push_sender import PushProvider
from .services.scheduler import SchedulerService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    push_provider: Optional[PushProvider] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The store, push provider and identity handles are built here, once, and
    reach every handler through the application state.
    """
    settings = settings or Settings()
    context = build_context(settings, push_provider=push_provider)
    events = build_event_bus(context)

    async def run_sweep():
        await events.publish(Topic.SCHEDULE_TICK)

    scheduler = SchedulerService(settings, on_tick=run_sweep)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - startup and shutdown."""
        logger.info("Starting device relay")

        await init_db(context.engine, settings)
        logger.info("Database initialized")

        if settings.scheduler_enabled:
            scheduler.start()

        yield

        scheduler.stop()
        await events.drain()
        await context.push_provider.close()
        await close_db(context.engine)
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Device Relay",
        description="Relays worker-device events to master devices via push",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.context = context
    app.state.events = events
    app.state.scheduler = scheduler

    # CORS middleware for the dashboard
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict to your domain
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": exc.code, "message": exc.message}},
        )

    app.include_router(devices_router)
    app.include_router(notifications_router)
    app.include_router(callable_router)
    app.include_router(hooks_router)

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "push_enabled": context.push_provider.enabled,
        }

    return app


if __name__ == "__main__":
    import uvicorn

    settings = Settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.web_port)

"""
Scholaco API - FastAPI backend for the scholarship application tracker
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scholaco import __version__, config
from scholaco.brevo_service import BrevoService
from scholaco.routers import applications, auth, dashboard, health
from scholaco.security import setup_security
from scholaco.session import SessionController
from scholaco.store import SupabaseStore, create_supabase_client

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_controller() -> SessionController:
    """Wire the store, repository and notifier from configuration."""
    store = SupabaseStore(create_supabase_client())
    return SessionController(store, notifier=BrevoService())


@asynccontextmanager
async def lifespan(app: FastAPI):
    controller: SessionController = app.state.controller
    await controller.initialize()
    if controller.store.available:
        controller.subscribe(asyncio.get_running_loop())
    logger.info("Scholaco API started (session=%s)", controller.state.value)
    yield
    logger.info("Scholaco API shutting down")


def create_app(controller: Optional[SessionController] = None) -> FastAPI:
    """Build the FastAPI app around one session controller."""
    app = FastAPI(
        title="Scholaco API",
        description="Scholarship application tracker",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.controller = controller or build_controller()

    allowed_origins = config.get_allowed_origins()
    logger.info("CORS allowed origins: %s", allowed_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Requested-With"],
    )
    setup_security(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(dashboard.router)
    app.include_router(applications.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("scholaco.main:app", host="0.0.0.0", port=8000)

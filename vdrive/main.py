"""FastAPI application entry point.

Wiring only: logging, lifespan, exception handlers, middleware, routers.
No business logic here. See vdrive.core.lifespan and
vdrive.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and
optionally clear get_settings cache) before calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vdrive.api.v1 import api_router
from vdrive.core.config import get_settings
from vdrive.core.exception_handlers import register_exception_handlers
from vdrive.core.lifespan import create_lifespan
from vdrive.shared.telemetry import setup_logging


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()

"""
Composition root.

``create_app`` builds a Tourbook instance from a ``Settings`` object: the
JSON API lives under /api/v1, rendered pages and /static at the root, and
the database engine is opened in the lifespan.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from tourbook.core.config import Settings, settings as default_settings
from tourbook.infrastructure.tours.database import build_engine, create_schema
from tourbook.infrastructure.tours.mailer import LoggingMailer
from tourbook.interfaces.health import router as health_router
from tourbook.interfaces.tours.booking_router import router as booking_router
from tourbook.interfaces.tours.review_router import router as review_router
from tourbook.interfaces.tours.review_router import tour_reviews_router
from tourbook.interfaces.tours.tour_router import router as tour_router
from tourbook.interfaces.tours.user_router import router as user_router
from tourbook.interfaces.tours.view_router import router as view_router
from tourbook.shared.errors.handlers import register_error_handlers
from tourbook.shared.logging import configure_logging
from tourbook.shared.security.body_limit import BodySizeLimitMiddleware
from tourbook.shared.security.headers import SecurityHeadersMiddleware
from tourbook.shared.security.rate_limiting import (
    build_limiter,
    rate_limit_exceeded_handler,
)

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"
STATIC_DIR = PACKAGE_DIR / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: open the database engine, create the schema."""
    settings: Settings = app.state.settings
    app.state.engine = build_engine(settings.get_database_url())
    if settings.create_schema:
        create_schema(app.state.engine)
    logger.info("%s %s started (%s)", settings.project_name, settings.version, settings.environment)

    yield

    app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build an application instance.

    Args:
        settings: Configuration for this instance. Defaults to the
            environment-loaded settings.

    Returns:
        A fully configured FastAPI application instance.
    """
    settings = settings or default_settings
    configure_logging(level=settings.log_level, development=not settings.is_production)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    app.state.settings = settings
    app.state.templates = templates
    app.state.mailer = LoggingMailer(sender=settings.email_from)

    # --- Rate Limiting ---
    app.state.limiter = build_limiter(settings)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # --- Security Middleware ---
    app.add_middleware(
        BodySizeLimitMiddleware, max_bytes=settings.max_request_size_bytes
    )
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Error Handlers ---
    register_error_handlers(app, settings, templates)

    # --- Routers ---
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(tour_router, prefix="/api/v1")
    app.include_router(tour_reviews_router, prefix="/api/v1")
    app.include_router(user_router, prefix="/api/v1")
    app.include_router(review_router, prefix="/api/v1")
    app.include_router(booking_router, prefix="/api/v1")
    app.include_router(view_router)
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    return app


app = create_app()

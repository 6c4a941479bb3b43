"""FastAPI application factory.

Learn: App factory pattern. create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis, database engine).
Middleware, CORS, exception handlers, and routers are all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pmhome import __version__
from pmhome.api import api_router
from pmhome.cache import close_redis, init_redis
from pmhome.config import settings
from pmhome.exception_handlers import register_exception_handlers
from pmhome.middleware.rate_limit import RateLimitMiddleware
from pmhome.middleware.request_id import RequestIdMiddleware
from pmhome.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "pmhome.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )
    if not settings.jwt_secret:
        logger.error("pmhome.jwt_secret_missing")

    try:
        await init_redis()
        logger.info("pmhome.redis_connected")
    except Exception as e:
        # Redis is optional; only rate limiting depends on it
        logger.warning("pmhome.redis_unavailable", error=str(e))

    yield

    logger.info("pmhome.shutdown")
    await close_redis()

    from pmhome.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="pmhome API",
        description="Authentication and user administration for the project-management dashboards",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)
    return app


# Default app instance (used by uvicorn: pmhome.main:app)
app = create_app()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import asyncpg
from .config import settings
from .db import init_db, close_db, ping
from .routers import customers as customers_router
from .routers import merchants as merchants_router
from .middleware import (
    limiter,
    log_requests,
    add_security_headers,
    limit_body_size,
    burst_guard,
    BurstTracker
)
from .exceptions import (
    APIException,
    api_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    database_exception_handler,
    rate_limit_exceeded_handler,
    general_exception_handler
)
from .response_models import success_response
import logging

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )


def create_app():
    configure_logging()

    app = FastAPI(
        title="Loyalty Service API",
        version="1.0",
        debug=settings.DEBUG
    )

    # Middleware added last runs first on the way in
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    # burst_guard is a no-op while app.state.burst_tracker is None
    app.state.burst_tracker = BurstTracker() if settings.BURST_GUARD_ENABLED else None
    app.middleware("http")(burst_guard)

    app.middleware("http")(limit_body_size)
    app.middleware("http")(add_security_headers)

    # CORS
    allowed = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed,
        allow_credentials=allowed != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(log_requests)

    # Register exception handlers for standardized error responses
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(asyncpg.PostgresError, database_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    @app.on_event("startup")
    async def _startup():
        await init_db()
        logger.info("Loyalty service database initialized")

    @app.on_event("shutdown")
    async def _shutdown():
        await close_db()
        logger.info("Loyalty service shutting down")

    # Include routers
    app.include_router(customers_router.router, prefix=settings.API_PREFIX)
    app.include_router(merchants_router.router, prefix=settings.API_PREFIX)

    @app.get("/healthz")
    @limiter.exempt
    async def healthz():
        """Health check endpoint with database connectivity."""
        return success_response(
            message="Loyalty service is healthy",
            data={
                "database": await ping(),
                "environment": settings.ENVIRONMENT,
                "version": "1.0",
                "service": "loyalty"
            }
        )

    return app

app = create_app()

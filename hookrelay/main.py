"""
HookRelay - Webhook relay and logging service

FastAPI application entry point.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

# Import observability modules
from hookrelay.config import Settings, settings
from hookrelay.database import create_all_tables, create_engine, create_session_factory
from hookrelay.errors import HookRelayError
from hookrelay.logging_config import configure_logging, get_logger
from hookrelay.sentry_config import configure_sentry
from hookrelay.middleware.logging import LoggingMiddleware
from hookrelay.routes.metrics import router as metrics_router

# Import route modules
from hookrelay.routes.webhooks import router as webhooks_router
from hookrelay.routes.ingest import router as ingest_router

logger = get_logger(component="app")


def error_response(message: str, status_code: int) -> JSONResponse:
    """JSON error body in the shape every endpoint uses."""
    return JSONResponse(status_code=status_code, content={"error": message})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup (when enabled) and release the pool on shutdown."""
    config: Settings = app.state.config
    if config.AUTO_CREATE_TABLES:
        await create_all_tables(app.state.engine)
        logger.info("tables_ready")
    try:
        yield
    finally:
        await app.state.engine.dispose()
        logger.info("engine_disposed")


def register_exception_handlers(app: FastAPI):
    """Render every failure as ``{"error": message}``."""

    @app.exception_handler(HookRelayError)
    async def hookrelay_error_handler(request: Request, exc: HookRelayError):
        return error_response(exc.message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response("Invalid request data", 400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # Method mismatches render like unmatched paths
        if exc.status_code in (404, 405):
            return error_response("Not found", 404)
        return error_response(str(exc.detail), exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("unhandled_exception", path=request.url.path, exc_info=exc)
        return error_response("Internal server error", 500)


def create_app(config: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Optional Settings. Defaults to the environment-loaded settings.
    """
    config = config or settings

    # Initialize logging first
    configure_logging(config.LOG_LEVEL)

    # Initialize Sentry (if SENTRY_DSN is set)
    configure_sentry(config)

    app = FastAPI(
        title=config.APP_NAME,
        version=config.APP_VERSION,
        description="Webhook relay and logging service: issue endpoints, capture inbound calls, keep daily stats",
        lifespan=lifespan,
    )

    # Store handle lives on the app, handed to each request via get_db
    engine = create_engine(config)
    app.state.config = config
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    app.add_middleware(LoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_exception_handlers(app)

    # Include metrics endpoint FIRST (so it's always available)
    app.include_router(metrics_router)

    # Include management API routes
    app.include_router(webhooks_router)

    # Include public ingestion route
    app.include_router(ingest_router)

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=404)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "name": config.APP_NAME,
            "version": config.APP_VERSION,
            "status": "healthy"
        }

    return app


def run():
    """Start the HookRelay server with uvicorn."""
    import uvicorn

    uvicorn.run(
        "hookrelay.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level="info",
    )


if __name__ == "__main__":
    run()

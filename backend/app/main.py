"""
FastAPI application entry point.

Run with:
    uvicorn backend.app.main:app --reload --port 3000

Startup order:
    1. Diagnostic logging
    2. Logger Schema → LoggerRegistry (a ConfigError here ends the process;
       there is no fallback logger)
    3. ErrorCorrelator over the registry, both stored on app.state
    4. Middleware, error handlers, routers
"""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# ── Core infrastructure ──
from backend.app.core.config import Settings, settings
from backend.app.core.errors import ConfigError, register_error_handlers
from backend.app.core.health import run_health_check
from backend.app.core.logging_config import get_logger, setup_logging
from backend.app.core.middleware import RequestLoggingMiddleware
from backend.app.observability.correlator import ErrorCorrelator
from backend.app.observability.registry import LoggerRegistry, build_registry
from backend.app.observability.types import Category

# ── API routers ──
from backend.app.api.v1.system import router as system_router
from backend.app.api.v1.users import router as users_router

# ── Initialise logging ──
setup_logging()
logger = get_logger(__name__)


def init_registry(config: Settings) -> LoggerRegistry:
    """Build the category loggers or terminate the process."""
    try:
        return build_registry(config)
    except ConfigError as exc:
        logger.critical("Failed to initialise category loggers: %s", exc)
        raise SystemExit(1) from exc


def install_excepthook(registry: LoggerRegistry) -> Callable:
    """Write uncaught exceptions to the system category before exiting."""
    previous = sys.excepthook

    def hook(exc_type, exc, tb):
        system_log = registry.lookup(Category.SYSTEM)
        if system_log is not None and not issubclass(exc_type, KeyboardInterrupt):
            system_log.fatal(
                {
                    "code": "UNCAUGHT_EXCEPTION",
                    "context": "process",
                    "error": {"type": exc_type.__name__, "message": str(exc)},
                },
                "Uncaught Exception",
            )
        previous(exc_type, exc, tb)

    sys.excepthook = hook
    return previous


# ── Application lifespan (startup / shutdown) ──

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown events."""
    config: Settings = app.state.settings
    logger.info(
        "Starting %s v%s [%s]",
        config.APP_NAME, config.APP_VERSION, config.ENVIRONMENT,
    )
    yield
    logger.info("Shutting down %s", config.APP_NAME)
    app.state.registry.close()


# ── Root & health endpoints ──

root_router = APIRouter()


@root_router.get("/", tags=["root"])
async def root(request: Request):
    config: Settings = request.app.state.settings
    return {
        "service": config.APP_NAME,
        "version": config.APP_VERSION,
        "environment": config.ENVIRONMENT,
        "categories": request.app.state.registry.categories,
        "docs": "/docs",
    }


@root_router.get("/health", tags=["health"])
async def health_check(request: Request):
    """Deep health probe — category loggers and log directory."""
    report = run_health_check(request.app.state.registry, request.app.state.settings)
    return report.to_dict()


@root_router.get("/health/live", tags=["health"])
async def liveness():
    """Kubernetes liveness probe — is the process alive?"""
    return {"status": "alive"}


@root_router.get("/health/ready", tags=["health"])
async def readiness(request: Request):
    """Kubernetes readiness probe — can we serve traffic?"""
    report = run_health_check(request.app.state.registry, request.app.state.settings)
    if report.status.value == "unhealthy":
        return JSONResponse(status_code=503, content=report.to_dict())
    return report.to_dict()


# ── Create application ──

def create_app(
    config: Optional[Settings] = None,
    registry: Optional[LoggerRegistry] = None,
) -> FastAPI:
    config = config or settings
    if registry is None:
        registry = init_registry(config)

    app = FastAPI(
        title=config.APP_NAME,
        description=(
            "Schema-validated category logging with exactly-once "
            "request outcome correlation."
        ),
        version=config.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.registry = registry
    app.state.correlator = ErrorCorrelator(registry)

    # ── Middleware stack (order matters — outermost first) ──
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS if not config.CORS_ALLOW_ALL else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # ── Error handlers ──
    register_error_handlers(app)

    # ── Register routers ──
    app.include_router(root_router)
    app.include_router(users_router)
    app.include_router(system_router)

    return app


app = create_app()
install_excepthook(app.state.registry)

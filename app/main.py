"""
app/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Registers API routes (webhook)
- No business logic should be written here
- Manages application lifecycle (startup/shutdown)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import os
import time

from app.core.config import settings, validate_settings
from app.core.errors import add_exception_handlers
from app.core.exceptions import StorageError
from app.core.logging import setup_logging, get_logger
from app.flow.context import get_context
from app.api import webhook

# Initialize logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info("🚀 Starting HookHost application...")

    try:
        logger.info("Validating configuration...")
        validate_settings()
        logger.info("✅ Configuration validated")

        logger.info("Preparing storage directories...")
        get_context().ensure_directories()
        logger.info("✅ Storage directories ready")

        logger.info("🎉 HookHost application started successfully!")
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Upload policy: {settings.UPLOAD_POLICY}")

    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise

    yield  # Application runs here

    logger.info("👋 HookHost application shut down")


app = FastAPI(
    title="HookHost - Bot Webhook Hosting",
    description="Telegram bot that hosts user scripts and manages their webhooks",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,  # Disable docs in production
    redoc_url="/redoc" if settings.is_development else None,
)

add_exception_handlers(app)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to all responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    # Telegram gives up on a webhook after a while
    if process_time > 5.0:
        logger.warning(
            f"Slow request detected: {request.method} {request.url.path}",
            extra={"process_time": process_time}
        )

    return response


app.include_router(webhook.router, prefix=settings.API_PREFIX, tags=["Webhook"])


def _storage_checks() -> dict:
    ctx = get_context()
    checks = {}
    for name, directory in (
        ("user_files", ctx.files.root),
        ("states", ctx.sessions.states_dir),
        ("temp", ctx.temp_dir),
    ):
        healthy = directory.is_dir() and os.access(directory, os.W_OK)
        checks[name] = "healthy" if healthy else "unhealthy"
    return checks


# Root endpoint
@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic info."""
    return {
        "name": "HookHost API",
        "version": "1.0.0",
        "description": "Telegram bot webhook hosting",
        "status": "running",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    Checks the storage directories and the hosting bot configuration.
    """
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "environment": settings.ENVIRONMENT,
        "version": "1.0.0",
        "checks": _storage_checks()
    }

    health_status["checks"]["hosting_bot"] = (
        "configured" if get_context().telegram.is_configured() else "not_configured"
    )

    if any(value == "unhealthy" for value in health_status["checks"].values()):
        health_status["status"] = "unhealthy"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)


# Readiness probe (for Kubernetes/orchestration)
@app.get("/ready", tags=["Health"])
async def readiness_check():
    """
    Readiness probe - indicates if app is ready to receive traffic.
    """
    try:
        get_context().ensure_directories()
    except StorageError as e:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": e.message}
        )
    return {"status": "ready"}


# Liveness probe (for Kubernetes/orchestration)
@app.get("/live", tags=["Health"])
async def liveness_check():
    """
    Liveness probe - indicates if app is alive.
    """
    return {"status": "alive"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )

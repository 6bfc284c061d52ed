"""tasktracker - Task Tracker REST API with Google and local sign-in."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tasktracker.core.config import constants, settings
from tasktracker.core.db_client import close_connection, init_db
from tasktracker.core.errors import register_exception_handlers
from tasktracker.core.logging import configure_logfire, instrument_fastapi
from tasktracker.interface.auth_router import router as auth_router
from tasktracker.interface.task_router import router as task_router


logger = logging.getLogger(__name__)


def validate_startup_configuration() -> None:
    """Validate required credentials before serving.

    The token secret is mandatory; Google OAuth is optional and only logged
    when missing. Exits the process with a clear message on failure.
    """
    logger.info("startup_validation_begin")

    try:
        settings.require_credential("secret_key", "Token signing secret")
    except ValueError as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\n❌ Startup validation failed: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    if settings.google_oauth_enabled:
        logger.info("startup_validation", extra={"service": "google_oauth", "status": "ok"})
    else:
        logger.info("startup_validation", extra={"service": "google_oauth", "status": "disabled"})

    logger.info("startup_validation_complete", extra={"status": "ok"})


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    # Configure logging first so validation logs are captured
    configure_logfire()
    validate_startup_configuration()

    await init_db()
    logger.info("Database initialized", extra={"db_path": settings.sqlite_db_path})

    yield
    # Shutdown
    await close_connection()


app = FastAPI(
    title="tasktracker",
    description="Task Tracker API",
    version=constants.API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(dict.fromkeys([settings.client_url, *constants.DEV_ORIGINS])),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(auth_router)
app.include_router(task_router)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        content={
            "status": "OK",
            "message": "Task Tracker API is running",
            "timestamp": datetime.now(UTC).isoformat(),
        },
        status_code=200,
    )


@app.get("/")
async def root() -> dict:
    """API index."""
    return {
        "message": "Task Tracker API",
        "version": constants.API_VERSION,
        "endpoints": {
            "health": "/health",
            "auth": "/auth",
            "tasks": "/api/tasks",
        },
    }


if __name__ == "__main__":
    uvicorn.run("tasktracker.main:app", host="0.0.0.0", port=settings.port)  # noqa: S104

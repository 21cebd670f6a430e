"""
api/main.py -- FastAPI application factory for Taskboard.

Run with:      taskboard
               uvicorn asgi:app --reload

create_app(settings) builds a fully wired app from one Settings instance.
The settings object is stored on app.state and is the only place routes and
the auth gate read configuration from -- there is no module-level secret.

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- adds CORS headers for allowed browser origins
  2. log_requests       -- one access-log line per request with latency
  3. enforce_timeout    -- bounds each request by REQUEST_TIMEOUT_SECONDS

Lifespan opens the user and task stores on startup and disposes their
connection pools on shutdown.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.tasks import router as tasks_router
from auth.store import UserStore
from core.config import Settings, get_settings
from tasks.policy import InvalidStatusError, TaskForbiddenError, TaskNotFoundError, TaskPolicyError
from tasks.store import TaskStore

VERSION = "0.1.0"

logger = logging.getLogger("taskboard.api")

# HTTP status for each refused-update kind raised by tasks/policy.py.
_POLICY_STATUS: dict[type[TaskPolicyError], int] = {
    TaskNotFoundError: 404,
    TaskForbiddenError: 403,
    InvalidStatusError: 400,
}


def _error_response(status_code: int, code: str, message: str, detail: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open both stores against settings.database_url and close them on shutdown."""
    settings: Settings = app.state.settings
    logger.info("Taskboard API starting up")
    app.state.user_store = UserStore(settings.database_url)
    app.state.task_store = TaskStore(settings.database_url)
    logger.info("Stores initialized")

    yield

    app.state.task_store.close()
    app.state.user_store.close()
    logger.info("Taskboard API shutdown complete")


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the Taskboard ASGI app.

    settings defaults to get_settings(); tests pass their own instance.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    app = FastAPI(
        title="Taskboard API",
        description="Per-user task tracking with bearer-token authentication.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # -----------------------------------------------------------------------
    # Middleware. Function middleware registered later wraps earlier ones, so
    # log_requests (registered second) sees the 504 produced by enforce_timeout.
    # -----------------------------------------------------------------------

    @app.middleware("http")
    async def enforce_timeout(request: Request, call_next):
        """Fail a request with 504 once it exceeds REQUEST_TIMEOUT_SECONDS.

        Sync handlers keep running in their worker thread after the deadline;
        the client just stops waiting for them.
        """
        try:
            return await asyncio.wait_for(call_next(request), timeout=settings.request_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Timed out after %.1fs: %s %s", settings.request_timeout_seconds, request.method, request.url.path
            )
            return _error_response(504, "timeout", "The request took too long to complete.")

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------

    app.include_router(auth_router, tags=["Auth"])
    app.include_router(tasks_router, tags=["Tasks"])

    # -----------------------------------------------------------------------
    # Exception handlers -- every error uses the ErrorResponse envelope.
    # -----------------------------------------------------------------------

    @app.exception_handler(TaskPolicyError)
    async def task_policy_handler(request: Request, exc: TaskPolicyError) -> JSONResponse:
        """Map a refused task update to its HTTP status."""
        return _error_response(_POLICY_STATUS.get(type(exc), 400), exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 422 with structured error when request body or path params fail validation."""
        return _error_response(422, "validation_error", "Request validation failed.", str(exc.errors()))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Return a structured error for all FastAPI/Starlette HTTP exceptions.

        Route handlers raise HTTPException with detail=ErrorDetail(...).model_dump().
        When detail is already a dict, use it directly as the error field.
        """
        headers = getattr(exc, "headers", None)
        if isinstance(exc.detail, dict):
            return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=headers)
        response = _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))
        if headers:
            response.headers.update(headers)
        return response

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        """Turn a store failure into 503; the driver error goes to the log only."""
        logger.exception("Store error on %s %s", request.method, request.url.path)
        return _error_response(503, "store_unavailable", "The data store is unavailable. Try again later.")

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler for unexpected server errors.

        The raw exception is logged, never written to the response body.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error_response(500, "internal_error", "An unexpected error occurred.")

    # -----------------------------------------------------------------------
    # Health -- public, reports store connectivity
    # -----------------------------------------------------------------------

    @app.get("/health", tags=["Health"])
    def health(request: Request) -> HealthResponse:
        """Return liveness, version and a per-store connectivity check."""
        components = {"app": "ok"}
        for name in ("user_store", "task_store"):
            try:
                getattr(request.app.state, name).ping()
                components[name] = "ok"
            except SQLAlchemyError:
                logger.exception("Health check failed for %s", name)
                components[name] = "error"
        status = "healthy" if all(v == "ok" for v in components.values()) else "degraded"
        return HealthResponse(status=status, version=VERSION, components=components)

    return app

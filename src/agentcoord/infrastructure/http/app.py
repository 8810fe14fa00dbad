"""FastAPI app factory and error mapping."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from agentcoord import __version__
from agentcoord.application.state import CoordinatorState
from agentcoord.domain.exceptions import ContextUnavailable, ValidationError

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"message": message, "code": code}},
    )


def create_app(state: CoordinatorState) -> FastAPI:
    """
    Create the HTTP application around an existing CoordinatorState.

    Args:
        state: Built by agentcoord.bootstrap.build_state (or by a test)

    Returns:
        Configured FastAPI app; in-flight tasks are cancelled on shutdown
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        cancelled = state.coordinator.cancel_all()
        if cancelled:
            logger.info(f"Cancelled {cancelled} in-flight task(s) on shutdown")

    app = FastAPI(title="agentcoord", version=__version__, lifespan=lifespan)
    app.state.coordinator_state = state
    _register_error_handlers(app)

    from agentcoord.infrastructure.http.routes import router

    app.include_router(router)
    return app


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return _error(400, str(exc), "VALIDATION_ERROR")

    @app.exception_handler(RequestValidationError)
    async def malformed_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        location = "/".join(str(p) for p in first.get("loc", ()))
        message = first.get("msg", "Malformed request body")
        return _error(400, f"{location}: {message}" if location else message, "VALIDATION_ERROR")

    @app.exception_handler(ContextUnavailable)
    async def context_unavailable(
        request: Request, exc: ContextUnavailable
    ) -> JSONResponse:
        return _error(503, str(exc), "CONTEXT_UNAVAILABLE")

    @app.exception_handler(Exception)
    async def internal_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error(500, str(exc) or type(exc).__name__, "INTERNAL_ERROR")

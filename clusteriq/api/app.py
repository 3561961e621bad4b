"""FastAPI application factory for ClusterIQ.

Usage::

    from clusteriq.api.app import create_app

    app = create_app(cache=cache, config=config)

The factory is designed for use by both the production bootstrap
(``clusteriq.app``) and unit tests.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from clusteriq.api.routes import router
from clusteriq.api.schemas import ErrorResponse
from clusteriq.cache.inventory_cache import AccountNotFoundError

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api/v1"


def create_app(cache: Any, config: Any = None) -> FastAPI:
    """Create and configure the ClusterIQ FastAPI application.

    Args:
        cache:  InventoryCache instance answering every inventory route.
        config: Optional ClusterIQConfig, kept on app.state for handlers.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from clusteriq import __version__

    app = FastAPI(
        title="ClusterIQ",
        summary="Cloud cluster inventory API",
        version=__version__,
        description=(
            "Read-only view of accounts, clusters and instances, refreshed "
            "from the inventory snapshot store on every request."
        ),
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
        openapi_url="/api/v1/openapi.json",
    )

    app.state.cache = cache
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix=_API_PREFIX)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    @app.exception_handler(AccountNotFoundError)
    async def account_not_found_handler(
        _request: Request,
        exc: AccountNotFoundError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(error="ACCOUNT_NOT_FOUND", detail=str(exc)).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = exc.errors()
        first_msg = str(errors[0].get("msg", "")) if errors else ""
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="INVALID_REQUEST", detail=first_msg).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions, never exposes stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                detail="An unexpected error occurred.",
            ).model_dump(),
        )

    return app

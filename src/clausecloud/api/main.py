"""
FastAPI application entry point.
"""

import math
import time
import traceback
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from clausecloud import __version__
from clausecloud.api.middleware import RATE_LIMIT_MESSAGE, SECURITY_HEADERS, RateLimiter
from clausecloud.config import get_settings
from clausecloud.exceptions import ClauseCloudError
from clausecloud.logging_setup import setup_logging
from clausecloud.models.api import ErrorResponse

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json)

    logger.info(
        "application_starting",
        environment=settings.environment,
        debug=settings.debug,
        provider=settings.llm_provider,
        model=settings.llm_model,
    )
    if not settings.has_llm_credentials():
        logger.warning("llm_api_key_missing", provider=settings.llm_provider)

    yield

    logger.info("application_shutting_down")


def _error_body(
    message: str,
    exc: Exception | None = None,
    detail: str | None = None,
) -> dict[str, Any]:
    stack = None
    if exc is not None and get_settings().debug:
        stack = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return ErrorResponse(error=message, message=detail, stack=stack).model_dump(
        exclude_none=True
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="ClauseCloud API",
        description="Contract risk analysis, Q&A and comparison backed by an LLM",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    limiter = RateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_ms / 1000,
    )

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        if limiter.enabled and request.url.path.startswith("/api/"):
            client = request.client.host if request.client else "unknown"
            retry_after = limiter.hit(client)
            if retry_after is not None:
                logger.warning("rate_limited", client=client, path=request.url.path)
                response = JSONResponse(
                    status_code=429, content=_error_body(RATE_LIMIT_MESSAGE)
                )
                response.headers["Retry-After"] = str(max(1, math.ceil(retry_after)))
                return response
        return await call_next(request)

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    # CORS middleware (outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(ClauseCloudError)
    async def clausecloud_error_handler(
        request: Request,
        exc: ClauseCloudError,
    ) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "request_failed",
            path=request.url.path,
            method=request.method,
            status=exc.status_code,
            error=exc.message,
            cause=str(exc.__cause__) if exc.__cause__ else None,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        logger.info("request_invalid", path=request.url.path, errors=len(errors))
        return JSONResponse(
            status_code=400,
            content=_error_body(f"{location}: {message}" if location else message),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        if exc.status_code == 404 and exc.detail == "Not Found":
            return JSONResponse(
                status_code=404,
                content=_error_body(
                    "Not Found", detail=f"Route {request.url.path} not found"
                ),
            )
        return JSONResponse(status_code=exc.status_code, content=_error_body(str(exc.detail)))

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("Internal Server Error", exc),
        )

    # Include routers
    from clausecloud.api.routes import chat, contracts, portfolio, settings as settings_routes

    app.include_router(contracts.router, prefix="/api/contracts", tags=["contracts"])
    app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
    app.include_router(portfolio.router, prefix="/api/portfolio", tags=["portfolio"])
    app.include_router(settings_routes.router, prefix="/api/settings", tags=["settings"])

    # Health check
    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        from clausecloud.services.llm_service import get_llm_service

        return {
            "status": "healthy",
            "environment": settings.environment,
            "services": {"llm": get_llm_service().health_check()},
        }

    # Root endpoint
    @app.get("/")
    async def root() -> dict:
        """Root endpoint."""
        return {
            "name": "ClauseCloud API",
            "version": __version__,
            "docs": "/docs",
            "endpoints": {
                "contracts": "/api/contracts",
                "chat": "/api/chat",
                "portfolio": "/api/portfolio",
                "settings": "/api/settings",
            },
        }

    return app


# Create default app instance
app = create_app()

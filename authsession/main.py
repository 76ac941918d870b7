"""Application factory: middleware, error envelope and router wiring."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from authsession import __version__
from authsession.api import health
from authsession.api.cookies import clear_refresh_cookie
from authsession.api.v1.router import router as api_v1_router
from authsession.config import settings
from authsession.core.exceptions import APIException, ServiceUnavailableError
from authsession.database import close_db, init_db
from authsession.middleware.audit_logger import AuditLogMiddleware
from authsession.middleware.request_id import RequestIDMiddleware
from authsession.middleware.security_headers import SecurityHeadersMiddleware
from authsession.redis import close_redis, init_redis

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    await init_db()
    try:
        await init_redis()
    except RedisError as exc:
        # Connection is retried on first use
        logger.warning("redis_unavailable_at_startup", error=str(exc))
    yield
    await close_db()
    await close_redis()


app = FastAPI(
    title=settings.app_name,
    description="Access/refresh token issuance, rotation and reuse detection.",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan,
)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject bodies above MAX_SIZE before they are read."""

    MAX_SIZE = 64 * 1024

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.MAX_SIZE:
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={
                    "error": {
                        "code": "REQUEST_TOO_LARGE",
                        "message": f"Request body too large. Maximum size is {self.MAX_SIZE // 1024}KB.",
                    }
                },
            )
        return await call_next(request)


# Last added runs first
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(AuditLogMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)


def _error_content(request: Request, error: dict) -> dict:
    if hasattr(request.state, "request_id"):
        error["request_id"] = request.state.request_id
    return {"error": error}


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    error = dict(exc.detail["error"]) if isinstance(exc.detail, dict) else {"message": str(exc.detail)}

    response = JSONResponse(
        status_code=exc.status_code,
        content=_error_content(request, error),
        headers=exc.headers,
    )
    if exc.clear_refresh_cookie:
        clear_refresh_cookie(response)
    return response


@app.exception_handler(RedisError)
async def redis_exception_handler(request: Request, exc: RedisError) -> JSONResponse:
    """Lock or connection failures leave the session untouched; the client may retry."""
    logger.warning(
        "redis_error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        request_id=getattr(request.state, "request_id", None),
    )
    return await api_exception_handler(request, ServiceUnavailableError())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"field": ".".join(str(loc) for loc in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    error = {
        "code": "VALIDATION_ERROR",
        "message": "Request validation failed",
        "details": errors,
    }
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_content(request, error),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        request_id=getattr(request.state, "request_id", None),
    )

    error = {
        "code": "INTERNAL_ERROR",
        "message": "An unexpected error occurred",
    }
    if settings.debug:
        error["details"] = [{"type": type(exc).__name__, "message": str(exc)}]

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_content(request, error),
    )


app.include_router(api_v1_router, prefix=settings.api_v1_prefix)
app.include_router(health.router)


@app.get("/", include_in_schema=False)
async def root() -> dict:
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
        "health": "/health",
    }

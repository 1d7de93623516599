"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis  # type: ignore[import-untyped]
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_limiter import FastAPILimiter
from secure import Secure

from sheltersync.api import api_router
from sheltersync.core.config import get_settings
from sheltersync.core.errors import ShelterSyncError
from sheltersync.core.logging_config import configure_logging
from sheltersync.services.bootstrap_service import ensure_default_admin

logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging(settings.log_level)

_ALLOWED_ORIGINS = [origin for origin in settings.cors_allow_origins if origin]


@asynccontextmanager
async def lifespan(_: FastAPI):
    redis_pool = None
    if settings.redis_url:
        try:
            redis_pool = redis.from_url(
                settings.redis_url, encoding="utf-8", decode_responses=True
            )
            await FastAPILimiter.init(redis_pool)
        except Exception:  # pragma: no cover - limiter startup is best effort
            logger.exception("Failed to initialize rate limiter")
            FastAPILimiter.redis = None
    try:
        await ensure_default_admin()
    except Exception:  # pragma: no cover - best effort bootstrap
        logger.exception("Failed to ensure default admin account")
    try:
        yield
    finally:
        if FastAPILimiter.redis is not None:
            try:
                await FastAPILimiter.close()
            except Exception:  # pragma: no cover - limiter shutdown
                logger.exception("Failed to close rate limiter")
        if redis_pool is not None:
            try:
                await redis_pool.aclose()
            except Exception:  # pragma: no cover
                logger.exception("Failed to close redis pool")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")

_secure_headers = Secure.with_default_headers()


@app.middleware("http")
async def _apply_security_headers(request, call_next):
    response = await call_next(request)
    _secure_headers.set_headers(response)
    return response


async def _shelter_sync_error_handler(
    _request: Request, exc: ShelterSyncError
) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code, content={"detail": exc.message}, headers=headers
    )


app.add_exception_handler(ShelterSyncError, _shelter_sync_error_handler)  # type: ignore[arg-type]

app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Return a simple welcome message."""
    return {"message": "ShelterSync API"}

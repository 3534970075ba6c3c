"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

import redis.asyncio as redis_async
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi_limiter import FastAPILimiter
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.api.http.deps import require_admin
from src.storefront.api.http.middleware.limiter import (
    close_rate_limiter,
    configure_rate_limiter,
    local_rate_limiter_factory,
    rate_limit_preset,
)
from src.storefront.api.http.routers import (
    auth,
    cart,
    contact,
    health,
    orders,
    products,
    profile,
)
from src.storefront.api.http.routers.admin import orders as admin_orders
from src.storefront.api.http.routers.admin import payments as admin_payments
from src.storefront.api.http.routers.admin import products as admin_products
from src.storefront.api.http.routers.admin import stats as admin_stats
from src.storefront.api.http.routers.admin import uploads as admin_uploads
from src.storefront.api.utils.app_startup import configure_logging, log_store_configuration
from src.storefront.core.errors import StorefrontError
from src.storefront.core.services.database import DbManageService, DbSessionService
from src.storefront.core.services.email_service import EmailService
from src.storefront.core.services.jwt import JwtGeneratorService, JwtVerificationService
from src.storefront.core.services.storage_service import PRODUCT_IMAGES, StorageService
from src.storefront.runtime.context import get_config

# Initialize logging
configure_logging()


# --- Security middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault(
            "Referrer-Policy", "strict-origin-when-cross-origin"
        )
        response.headers.setdefault(
            "Permissions-Policy", "geolocation=(), microphone=()"
        )
        # HSTS only in prod
        if get_config().app.environment == "production":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        return response


# --- FastAPI app setup ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup()
    try:
        yield
    finally:
        await shutdown()


app = FastAPI(
    title="Storefront API",
    lifespan=lifespan,
    docs_url=None if get_config().app.environment == "production" else "/docs",
    redoc_url=None if get_config().app.environment == "production" else "/redoc",
)

app.add_middleware(SecurityHeadersMiddleware)

# expose startup for tests
__all__ = ["app", "startup", "shutdown"]

# --- CORS configuration ---
if get_config().app.environment == "production" and (
    "*" in get_config().app.cors.origins
):
    raise RuntimeError(
        "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().app.cors.origins,
    allow_credentials=get_config().app.cors.allow_credentials,
    allow_methods=get_config().app.cors.allow_methods,
    allow_headers=get_config().app.cors.allow_headers,
)


# --- Domain errors ---
@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.bind(error_type=type(exc).__name__).error("request.failed: {}", exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# --- Request logging middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    # Correlation / tracing
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    xff = request.headers.get("x-forwarded-for")
    client_ip = (
        xff.split(",")[0].strip()
        if xff
        else request.client.host
        if request.client
        else "unknown"
    )

    # query strings may carry search terms or emails; not logged
    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip,
        "user_agent": request.headers.get("user-agent", "unknown"),
        "http_version": request.scope.get("http_version", "1.1"),
        "scheme": request.url.scheme,
        "host": request.headers.get("host", request.url.hostname or "-"),
    }

    start = time.perf_counter()

    # Everything that logs within this block inherits base_ctx
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("request.end")

            response.headers.setdefault("X-Request-ID", request_id)
            return response

        except HTTPException as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=exc.status_code,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.detail, "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        except RequestValidationError as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=422,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.validation_error")
            return JSONResponse(
                status_code=422,
                content={"detail": exc.errors(), "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )


# --- Router registration ---
admin_router = APIRouter(
    prefix="/admin",
    dependencies=[Depends(require_admin), Depends(rate_limit_preset("admin"))],
)
admin_router.include_router(admin_products.router)
admin_router.include_router(admin_orders.router)
admin_router.include_router(admin_payments.router)
admin_router.include_router(admin_stats.router)
admin_router.include_router(admin_uploads.router)

api_router = APIRouter(prefix="/api")
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(products.router)
api_router.include_router(cart.router)
api_router.include_router(orders.router)
api_router.include_router(profile.router)
api_router.include_router(contact.router)
api_router.include_router(admin_router)
app.include_router(api_router)

# Only the public bucket is served statically; payment proofs go through admin routes
app.mount(
    f"/media/{PRODUCT_IMAGES}",
    StaticFiles(
        directory=Path(get_config().storage.root) / PRODUCT_IMAGES, check_dir=False
    ),
    name="media",
)


def _activate_local_rate_limiter() -> None:
    logger.warning("Using in-memory rate limiter")
    configure_rate_limiter(limiter_factory=local_rate_limiter_factory)


# --- Rate limiter setup ---
async def _initialize_rate_limiter() -> None:
    config = get_config()
    if not config.redis.url:
        logger.info("Redis URL not configured; skipping Redis rate limiter")
        _activate_local_rate_limiter()
        return

    try:
        logger.info("Initializing FastAPI limiter with Redis: {}", config.redis.url)
        client = redis_async.from_url(
            config.redis.connection_string,
            encoding="utf-8",
            decode_responses=config.redis.decode_responses,
        )
        await FastAPILimiter.init(client)
        app.state.redis = client
        configure_rate_limiter()
    except Exception:
        logger.exception("Failed to initialize FastAPI limiter with Redis")
        if config.app.environment == "production":
            raise
        _activate_local_rate_limiter()


# --- Lifecycle hooks ---
async def startup() -> None:
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)
    log_store_configuration(config)

    if config.app.environment == "production" and (
        not config.app.session_signing_secret
        or config.app.session_signing_secret == "dev-secret-key-change-me"
    ):
        raise RuntimeError("app.session_signing_secret must be set in production")

    database_service = DbSessionService()
    if config.database.auto_create:
        DbManageService(database_service.engine).create_all()

    storage_service = StorageService()
    storage_service.ensure_buckets()

    app.state.app_dependencies = ApplicationDependencies(
        jwt_verify_service=JwtVerificationService(),
        jwt_generation_service=JwtGeneratorService(),
        database_service=database_service,
        email_service=EmailService(),
        storage_service=storage_service,
    )

    await _initialize_rate_limiter()


async def shutdown() -> None:
    logger.info("Shutting down application")
    await close_rate_limiter()
    app_dependencies: ApplicationDependencies = app.state.app_dependencies
    app_dependencies.database_service.dispose()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_config().app.host,
        port=get_config().app.port,
        access_log=False,  # access logging happens in log_requests
    )

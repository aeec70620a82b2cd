"""Main FastAPI application for Villa - reality-TV fan social API.

This module serves as the entry point for the Villa application: a REST API
serving a read-only Islander (cast member) catalog, user accounts with
bearer-token sessions, and a small social feed with replies, like/dislike
reactions and a follow graph.

Application Architecture:
    - Presentation Layer: FastAPI routers and endpoints
    - Business Logic Layer: Service classes (auth, users, posts, islanders)
      plus the engagement state machine and the social graph
    - Data Access Layer: MongoStore over the Islanders, Users and Posts
      collections
    - Cross-cutting Concerns: Logging, error handling, dependency injection,
      Prometheus metrics

Environment Configuration:
    - API_DEBUG: Enable debug mode and verbose logging
    - API_PREFIX: Route prefix (default /api)
    - SECURITY_SECRET_KEY: Token signing key
    - MONGO_URI / MONGO_DATABASE: Document store location

Example Usage:
    Start the development server:
        uvicorn villa.main:app --reload --port 4000

    Health check:
        curl http://localhost:4000/health
"""

import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from .core.dependencies import get_service_container
from .core.error_handlers import register_error_handlers
from .core.logging import ContextLogger, setup_logging
from .core.settings import settings
from .routers import auth, islanders, posts, profile, users

logger = ContextLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """FastAPI application lifespan context manager.

    Startup Sequence:
        1. Initialize structured logging
        2. Initialize the service container, which creates the store handle
        3. Ensure store indexes (fails startup if the store is unreachable)

    Shutdown Sequence:
        1. Log shutdown with uptime
        2. Close the store handle
    """
    setup_logging()
    app.state.start_time = time.time()

    container = get_service_container()
    container.initialize()
    await container.store.ensure_indexes()
    app.state.container = container

    logger.info(
        "Villa application started successfully",
        extra={
            "environment": "development" if settings.debug else "production",
            "version": settings.version,
            "debug_mode": settings.debug,
            "api_prefix": settings.prefix,
            "startup_time": time.time() - app.state.start_time,
        },
    )

    yield

    total_uptime = time.time() - app.state.start_time
    logger.info(
        "Villa application shutting down gracefully",
        extra={"total_uptime_seconds": round(total_uptime, 2)},
    )
    container.shutdown()


app = FastAPI(
    title=settings.project_name,
    description="""
    Villa is the backend of a reality-TV fan app.

    Features:
    • Islander (cast member) catalog
    • Signup and login with one-hour bearer tokens
    • Feed posts with replies and up/down reactions
    • Follow and unfollow other fans
    """,
    version=settings.version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=(
        f"{settings.prefix}/openapi.json" if settings.prefix else "/openapi.json"
    ),
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
    max_age=3600,
)


def resolve_correlation_id(request_id: str | None) -> tuple[str, str]:
    """Pick the correlation id for a request and report where it came from.

    A well-formed UUID in ``X-Request-ID`` is reused; anything else is
    replaced by a fresh one.
    """
    if not request_id:
        return str(uuid.uuid4()), "generated"
    try:
        return str(uuid.UUID(request_id)), "client"
    except ValueError:
        return str(uuid.uuid4()), "regenerated"


@app.middleware("http")
async def request_middleware(request: Request, call_next: Any) -> Any:
    """Tag each request with a correlation id and log its outcome.

    The id is stored on ``request.state`` for the error handlers and echoed
    back in ``X-Correlation-ID``.
    """
    correlation_id, source = resolve_correlation_id(
        request.headers.get("X-Request-ID")
    )
    request.state.correlation_id = correlation_id

    start = time.perf_counter()
    logger.debug(
        "HTTP request received",
        extra={
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
            "request_id_source": source,
        },
    )

    response = await call_next(request)

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code}",
        extra={
            "correlation_id": correlation_id,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - start) * 1000, 2),
        },
    )

    response.headers["X-Correlation-ID"] = correlation_id
    return response


register_error_handlers(app)

app.include_router(auth.router, prefix=settings.prefix)
app.include_router(profile.router, prefix=settings.prefix)
app.include_router(posts.router, prefix=settings.prefix)
app.include_router(users.router, prefix=settings.prefix)
app.include_router(islanders.router, prefix=settings.prefix)

app.mount("/metrics", make_asgi_app())


@app.get(
    "/",
    summary="API root information",
    description="Returns basic API information and navigation links",
    tags=["System"],
)
async def root() -> dict[str, Any]:
    """API root endpoint providing basic service information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs",
        "redoc": "/redoc",
        "status": "operational",
        "api_prefix": settings.prefix,
        "features": ["auth", "profile", "posts", "users", "islanders"],
    }


MEMORY_DEGRADED_BYTES = 1024 * 1024 * 1024


def overall_status(store_ok: bool, rss_bytes: int) -> str:
    """Combine store reachability and process memory into one status."""
    if not store_ok:
        return "unhealthy"
    if rss_bytes > MEMORY_DEGRADED_BYTES:
        return "degraded"
    return "healthy"


@app.get(
    "/health",
    summary="Application health check",
    description="Returns process metrics and document store connectivity",
    tags=["System"],
)
async def health_check(request: Request) -> JSONResponse:
    """Report liveness, process metrics and whether the store answers.

    Status Codes:
        - 200: Service is healthy
        - 503: Document store unreachable, or memory above 1GB
    """
    import psutil

    process = psutil.Process()
    rss = process.memory_info().rss
    uptime_seconds = int(time.time() - getattr(app.state, "start_time", time.time()))

    store_ok = await get_service_container().store.ping()
    health_status = overall_status(store_ok, rss)

    body = {
        "status": health_status,
        "version": settings.version,
        "environment": "development" if settings.debug else "production",
        "uptime_seconds": uptime_seconds,
        "uptime_human": (
            f"{uptime_seconds // 3600} hours, {uptime_seconds % 3600 // 60} minutes"
        ),
        "memory_mb": round(rss / 1024 / 1024, 2),
        "cpu_percent": round(process.cpu_percent(), 2),
        "dependencies": {
            "document_store": "connected" if store_ok else "unreachable",
        },
        "timestamp": time.time(),
        "correlation_id": getattr(request.state, "correlation_id", None),
    }

    if health_status != "healthy":
        logger.warning(
            "Health check failed",
            extra={"health_status": health_status, "store_ok": store_ok},
        )
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return JSONResponse(status_code=status.HTTP_200_OK, content=body)

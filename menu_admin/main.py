"""
FastAPI Application Entry Point

Digital Menu Admin - back office for a digital-menu business.
Runs against an in-memory backend (development) or Supabase / SQL (production).

Endpoints:
    - POST /api/auth/login: Sign in with email and password
    - POST /api/auth/logout: Invalidate the current session
    - GET /api/auth/me: Current user
    - /api/products, /api/categories: Catalog CRUD
    - /api/delivery, /api/schedule, /api/store: Store settings
    - GET /api/orders: Order list, POST /api/orders/export: Excel export
    - GET /api/dashboard: Dashboard counts
    - GET /health: System health check
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import redis
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from menu_admin.core.config import get_settings, setup_logging
from menu_admin.dependencies import backend_dependency, bearer_token, require_admin
from menu_admin.routes import router
from menu_admin.schemas import (
    ActionResult,
    ErrorResponse,
    HealthResponse,
    LoginRequest,
    LoginResponse,
    UserResponse,
)
from menu_admin.services.backend import (
    AuthenticationError,
    AuthUser,
    BackendError,
    BaseBackend,
    SqlBackend,
    get_backend,
)

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    backend = get_backend()
    logger.info(f"✅ Backend: {backend.provider_name}")

    if isinstance(backend, SqlBackend):
        await backend.create_tables()
        logger.info("✅ Database tables ready")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    if not settings.auth_required:
        logger.warning("⚠️ AUTH_REQUIRED is off, admin routes are open")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await backend.aclose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Admin API for a digital menu: products, categories, delivery fees, "
        "opening hours, orders and store status."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    backend: BaseBackend = Depends(backend_dependency),
) -> HealthResponse:
    """Verify the backend and the export queue are reachable."""

    backend_status = "healthy" if await backend.health_check() else "unhealthy"
    if backend_status != "healthy":
        logger.error(f"Backend health check failed ({backend.provider_name})")

    # Check Redis
    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(settings.redis_url, socket_timeout=2)
        r.ping()
        r.close()
    except redis.RedisError as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.error(f"Redis health check failed: {e}")

    overall = "operational" if all(
        s == "healthy" for s in [backend_status, redis_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        backend=backend_status,
        backend_provider=backend.provider_name,
        redis=redis_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@app.post(
    "/api/auth/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    tags=["Auth"],
)
async def login(
    data: LoginRequest,
    backend: BaseBackend = Depends(backend_dependency),
) -> LoginResponse:
    """
    Sign in with email and password.

    The returned access token goes in the Authorization header of every
    /api request.
    """
    try:
        session = await backend.sign_in(data.email, data.password)
    except AuthenticationError as e:
        logger.info(f"Failed login for {data.email}: {e.message}")
        raise HTTPException(status_code=401, detail="Invalid email or password")
    except BackendError as e:
        logger.error(f"Login failed: {e.message}")
        raise HTTPException(status_code=502, detail="Error signing in")

    logger.info(f"Admin signed in: {session.user.email}")
    return LoginResponse(**session.to_dict())


@app.post("/api/auth/logout", response_model=ActionResult, tags=["Auth"])
async def logout(
    token: Optional[str] = Depends(bearer_token),
    backend: BaseBackend = Depends(backend_dependency),
) -> ActionResult:
    """Invalidate the session. Succeeds even without a token."""
    if token:
        try:
            await backend.sign_out(token)
        except BackendError as e:
            logger.warning(f"Sign out failed: {e.message}")
    return ActionResult(message="Signed out")


@app.get(
    "/api/auth/me",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    tags=["Auth"],
)
async def current_user(
    user: Optional[AuthUser] = Depends(require_admin),
) -> UserResponse:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return UserResponse(id=user.id, email=user.email, role=user.role)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


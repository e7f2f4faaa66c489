"""
Dependency wiring for the FastAPI app.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException

from menu_admin.core.config import get_settings
from menu_admin.services import (
    CategoryService,
    DashboardService,
    DeliveryService,
    OrderService,
    ProductService,
    ScheduleService,
    StoreService,
)
from menu_admin.services.backend import (
    AuthenticationError,
    AuthUser,
    BackendError,
    BaseBackend,
    get_backend,
)

logger = logging.getLogger(__name__)


def backend_dependency() -> BaseBackend:
    """Overridden in tests to inject a fresh backend."""
    return get_backend()


def bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Extract the token from an "Authorization: Bearer <token>" header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def require_admin(
    token: Optional[str] = Depends(bearer_token),
    backend: BaseBackend = Depends(backend_dependency),
) -> Optional[AuthUser]:
    """
    Resolve the signed-in user.

    Returns None when AUTH_REQUIRED is off.
    """
    if not get_settings().auth_required:
        return None

    if token is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return await backend.get_user(token)
    except AuthenticationError as e:
        logger.info(f"Rejected token: {e.message}")
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired session",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except BackendError as e:
        logger.error(f"Session lookup failed: {e.message}")
        raise HTTPException(status_code=502, detail="Error verifying session")


def product_service(backend: BaseBackend = Depends(backend_dependency)) -> ProductService:
    return ProductService(backend)


def category_service(backend: BaseBackend = Depends(backend_dependency)) -> CategoryService:
    return CategoryService(backend)


def delivery_service(backend: BaseBackend = Depends(backend_dependency)) -> DeliveryService:
    return DeliveryService(backend)


def schedule_service(backend: BaseBackend = Depends(backend_dependency)) -> ScheduleService:
    return ScheduleService(backend)


def order_service(backend: BaseBackend = Depends(backend_dependency)) -> OrderService:
    return OrderService(backend)


def store_service(backend: BaseBackend = Depends(backend_dependency)) -> StoreService:
    return StoreService(backend)


def dashboard_service(backend: BaseBackend = Depends(backend_dependency)) -> DashboardService:
    return DashboardService(backend)

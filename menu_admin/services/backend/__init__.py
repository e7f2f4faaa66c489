"""
Backend Service Factory

Provides a single entry point for obtaining the backend-as-a-service client.
Automatically selects the in-memory, Supabase or SQL backend based on
ENV_MODE and BACKEND_PROVIDER.

Usage:
    from menu_admin.services.backend import get_backend

    backend = get_backend()
    rows = await backend.select("produtos", order_by="created_at", descending=True)

Environment Switching:
    - ENV_MODE=development -> InMemoryBackend (seeded with demo data)
    - ENV_MODE=staging/production, BACKEND_PROVIDER=supabase -> SupabaseBackend
    - ENV_MODE=staging/production, BACKEND_PROVIDER=sql -> SqlBackend
"""

import logging
from functools import lru_cache

from menu_admin.core.config import BackendProvider, get_settings
from menu_admin.services.backend.base import (
    AuthenticationError,
    AuthSession,
    AuthUser,
    BackendError,
    BaseBackend,
    RecordNotFoundError,
    Row,
    new_row_id,
)
from menu_admin.services.backend.mock import InMemoryBackend
from menu_admin.services.backend.supabase import SupabaseBackend
from menu_admin.services.backend.sql import SqlBackend

logger = logging.getLogger(__name__)


@lru_cache()
def get_backend() -> BaseBackend:
    """
    Get the configured backend instance.

    The instance is cached so in-memory state and HTTP connection pools
    are shared by every request.

    Returns:
        BaseBackend: Configured backend instance

    Raises:
        ValueError: If a real backend is selected but not configured
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Backend: Using InMemoryBackend (development mode)")
        return InMemoryBackend(seed=settings.seed_demo_data)

    if settings.backend_provider == BackendProvider.SQL:
        logger.info(f"Backend: Using SqlBackend ({settings.env_mode.value} mode)")
        return SqlBackend()

    logger.info(f"Backend: Using SupabaseBackend ({settings.env_mode.value} mode)")
    return SupabaseBackend()


def reset_backend() -> None:
    """
    Clear the cached backend instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_backend.cache_clear()
    logger.debug("Backend cache cleared")


__all__ = [
    "get_backend",
    "reset_backend",
    "BaseBackend",
    "BackendError",
    "RecordNotFoundError",
    "AuthenticationError",
    "AuthSession",
    "AuthUser",
    "Row",
    "new_row_id",
    "InMemoryBackend",
    "SupabaseBackend",
    "SqlBackend",
]

"""
                        Services Module

Business logic behind each dashboard screen. Every service works against
a backend from menu_admin.services.backend (in-memory in development,
Supabase or SQL in production).

Services:
    - products / categories: catalog CRUD
    - delivery / schedule / store: store settings
    - orders / dashboard: read-only views
    - excel_manager: file-locked order export
"""

from menu_admin.services.categories import CategoryService
from menu_admin.services.dashboard import DashboardService
from menu_admin.services.delivery import DeliveryService
from menu_admin.services.orders import OrderService
from menu_admin.services.products import ProductService
from menu_admin.services.schedule import ScheduleSaveError, ScheduleService
from menu_admin.services.store import StoreService

__all__ = [
    "CategoryService",
    "DashboardService",
    "DeliveryService",
    "OrderService",
    "ProductService",
    "ScheduleSaveError",
    "ScheduleService",
    "StoreService",
]

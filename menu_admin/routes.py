"""
HTTP routes for the dashboard screens.

Each write answers with an ActionResult (the toast shown to the user).
Backend failures become HTTP errors whose detail is the toast message.
"""

import logging
from typing import Optional

from celery.exceptions import OperationalError
from fastapi import APIRouter, Depends, HTTPException, Query

from menu_admin.dependencies import (
    category_service,
    dashboard_service,
    delivery_service,
    order_service,
    product_service,
    require_admin,
    schedule_service,
    store_service,
)
from menu_admin.schemas import (
    ActionResult,
    Category,
    CategoryCreate,
    CategoryOption,
    DashboardStats,
    DeliverySettings,
    DeliverySettingsUpdate,
    ErrorResponse,
    ExportResponse,
    OrderListItem,
    OrderListResponse,
    Product,
    ProductCreate,
    ProductListResponse,
    ScheduleResponse,
    ScheduleUpdate,
    StockUpdate,
    StoreStatus,
    StoreStatusUpdate,
)
from menu_admin.services import (
    CategoryService,
    DashboardService,
    DeliveryService,
    OrderService,
    ProductService,
    ScheduleSaveError,
    ScheduleService,
    StoreService,
)
from menu_admin.services.backend import AuthenticationError, BackendError, RecordNotFoundError

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}

router = APIRouter(
    prefix="/api",
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorResponse}},
)


def backend_failure(
    exc: BackendError,
    message: str,
    not_found: Optional[str] = None,
) -> HTTPException:
    """Map a backend error to the HTTP error carrying the toast message."""
    if isinstance(exc, RecordNotFoundError):
        return HTTPException(status_code=404, detail=not_found or message)
    if isinstance(exc, AuthenticationError):
        return HTTPException(status_code=401, detail="Invalid or expired session")
    return HTTPException(status_code=502, detail=message)


# =============================================================================
# DASHBOARD
# =============================================================================

@router.get("/dashboard", response_model=DashboardStats, tags=["Dashboard"])
async def dashboard_stats(
    service: DashboardService = Depends(dashboard_service),
) -> DashboardStats:
    """Counts and store status for the dashboard cards."""
    return await service.get_stats()


# =============================================================================
# PRODUCTS
# =============================================================================

@router.get("/products", response_model=ProductListResponse, responses=ERROR_RESPONSES, tags=["Products"])
async def list_products(
    search: Optional[str] = Query(None, max_length=200),
    service: ProductService = Depends(product_service),
) -> ProductListResponse:
    """Products newest first, searchable by name or description."""
    try:
        return await service.list_products(search)
    except BackendError as e:
        raise backend_failure(e, "Error loading products")


@router.get("/products/{product_id}", response_model=Product, responses=ERROR_RESPONSES, tags=["Products"])
async def get_product(
    product_id: str,
    service: ProductService = Depends(product_service),
) -> Product:
    try:
        return await service.get_product(product_id)
    except BackendError as e:
        raise backend_failure(e, "Error loading product", not_found="Product not found")


@router.post(
    "/products",
    status_code=201,
    response_model=ActionResult,
    responses=ERROR_RESPONSES,
    tags=["Products"],
)
async def create_product(
    data: ProductCreate,
    service: ProductService = Depends(product_service),
) -> ActionResult:
    try:
        product = await service.create_product(data)
    except BackendError as e:
        raise backend_failure(e, "Error saving product")
    return ActionResult(message="Product created successfully!", data=product)


@router.put("/products/{product_id}", response_model=ActionResult, responses=ERROR_RESPONSES, tags=["Products"])
async def update_product(
    product_id: str,
    data: ProductCreate,
    service: ProductService = Depends(product_service),
) -> ActionResult:
    try:
        product = await service.update_product(product_id, data)
    except BackendError as e:
        raise backend_failure(e, "Error saving product", not_found="Product not found")
    return ActionResult(message="Product updated successfully!", data=product)


@router.delete("/products/{product_id}", response_model=ActionResult, responses=ERROR_RESPONSES, tags=["Products"])
async def delete_product(
    product_id: str,
    service: ProductService = Depends(product_service),
) -> ActionResult:
    try:
        await service.delete_product(product_id)
    except BackendError as e:
        raise backend_failure(e, "Error deleting product")
    return ActionResult(message="Product deleted successfully!")


@router.patch(
    "/products/{product_id}/stock",
    response_model=ActionResult,
    responses=ERROR_RESPONSES,
    tags=["Products"],
)
async def update_stock(
    product_id: str,
    data: StockUpdate,
    service: ProductService = Depends(product_service),
) -> ActionResult:
    """Inline stock edit. An empty value leaves the stock untouched."""
    try:
        product = await service.update_stock(product_id, data.stock)
    except BackendError as e:
        raise backend_failure(e, "Error updating stock", not_found="Product not found")
    if product is None:
        return ActionResult(message="Stock unchanged")
    return ActionResult(message="Stock updated successfully!", data=product)


# =============================================================================
# CATEGORIES
# =============================================================================

@router.get("/categories", response_model=list[Category], responses=ERROR_RESPONSES, tags=["Categories"])
async def list_categories(
    service: CategoryService = Depends(category_service),
) -> list[Category]:
    try:
        return await service.list_categories()
    except BackendError as e:
        raise backend_failure(e, "Error loading categories")


@router.get(
    "/categories/options",
    response_model=list[CategoryOption],
    responses=ERROR_RESPONSES,
    tags=["Categories"],
)
async def category_options(
    service: CategoryService = Depends(category_service),
) -> list[CategoryOption]:
    """Id/name pairs for the product form, sorted by name."""
    try:
        return await service.list_options()
    except BackendError as e:
        raise backend_failure(e, "Error loading categories")


@router.get("/categories/{category_id}", response_model=Category, responses=ERROR_RESPONSES, tags=["Categories"])
async def get_category(
    category_id: str,
    service: CategoryService = Depends(category_service),
) -> Category:
    try:
        return await service.get_category(category_id)
    except BackendError as e:
        raise backend_failure(e, "Error loading category", not_found="Category not found")


@router.post(
    "/categories",
    status_code=201,
    response_model=ActionResult,
    responses=ERROR_RESPONSES,
    tags=["Categories"],
)
async def create_category(
    data: CategoryCreate,
    service: CategoryService = Depends(category_service),
) -> ActionResult:
    try:
        category = await service.create_category(data)
    except BackendError as e:
        raise backend_failure(e, "Error saving category")
    return ActionResult(message="Category created successfully!", data=category)


@router.put("/categories/{category_id}", response_model=ActionResult, responses=ERROR_RESPONSES, tags=["Categories"])
async def update_category(
    category_id: str,
    data: CategoryCreate,
    service: CategoryService = Depends(category_service),
) -> ActionResult:
    try:
        category = await service.update_category(category_id, data)
    except BackendError as e:
        raise backend_failure(e, "Error saving category", not_found="Category not found")
    return ActionResult(message="Category updated successfully!", data=category)


@router.delete(
    "/categories/{category_id}",
    response_model=ActionResult,
    responses=ERROR_RESPONSES,
    tags=["Categories"],
)
async def delete_category(
    category_id: str,
    service: CategoryService = Depends(category_service),
) -> ActionResult:
    try:
        await service.delete_category(category_id)
    except BackendError as e:
        raise backend_failure(e, "Error deleting category")
    return ActionResult(message="Category deleted successfully!")


# =============================================================================
# DELIVERY
# =============================================================================

@router.get("/delivery", response_model=DeliverySettings, responses=ERROR_RESPONSES, tags=["Delivery"])
async def get_delivery_settings(
    service: DeliveryService = Depends(delivery_service),
) -> DeliverySettings:
    try:
        return await service.get_settings()
    except BackendError as e:
        raise backend_failure(e, "Error loading delivery settings")


@router.put("/delivery", response_model=ActionResult, responses=ERROR_RESPONSES, tags=["Delivery"])
async def save_delivery_settings(
    data: DeliverySettingsUpdate,
    service: DeliveryService = Depends(delivery_service),
) -> ActionResult:
    try:
        saved = await service.save_settings(data)
    except BackendError as e:
        raise backend_failure(e, "Error saving delivery settings")
    return ActionResult(message="Delivery settings saved successfully!", data=saved)


# =============================================================================
# SCHEDULE
# =============================================================================

@router.get("/schedule", response_model=ScheduleResponse, responses=ERROR_RESPONSES, tags=["Schedule"])
async def get_schedule(
    service: ScheduleService = Depends(schedule_service),
) -> ScheduleResponse:
    try:
        return await service.get_schedule()
    except BackendError as e:
        raise backend_failure(e, "Error loading opening hours")


@router.put("/schedule", response_model=ActionResult, responses=ERROR_RESPONSES, tags=["Schedule"])
async def save_schedule(
    data: ScheduleUpdate,
    service: ScheduleService = Depends(schedule_service),
) -> ActionResult:
    try:
        saved = await service.save_schedule(data)
    except ScheduleSaveError as e:
        raise HTTPException(status_code=502, detail=e.message)
    except BackendError as e:
        raise backend_failure(e, "Error saving opening hours")
    return ActionResult(message="Opening hours saved successfully!", data=saved)


# =============================================================================
# ORDERS
# =============================================================================

@router.get("/orders", response_model=OrderListResponse, responses=ERROR_RESPONSES, tags=["Orders"])
async def list_orders(
    search: Optional[str] = Query(None, max_length=200),
    status: Optional[str] = Query(None, description="Order status, or 'all'"),
    service: OrderService = Depends(order_service),
) -> OrderListResponse:
    """Orders newest first; total ignores the filters."""
    try:
        return await service.list_orders(search=search, status=status)
    except BackendError as e:
        raise backend_failure(e, "Error loading orders")


@router.get("/orders/{order_id}", response_model=OrderListItem, responses=ERROR_RESPONSES, tags=["Orders"])
async def get_order(
    order_id: str,
    service: OrderService = Depends(order_service),
) -> OrderListItem:
    try:
        return await service.get_order(order_id)
    except BackendError as e:
        raise backend_failure(e, "Error loading order", not_found=f"Order #{order_id} not found")


@router.post(
    "/orders/export",
    status_code=202,
    response_model=ExportResponse,
    responses={**ERROR_RESPONSES, 503: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def export_orders(
    service: OrderService = Depends(order_service),
) -> ExportResponse:
    """Queue an Excel export of every order."""
    from menu_admin.tasks import export_orders_to_excel

    try:
        rows = await service.list_rows()
    except BackendError as e:
        raise backend_failure(e, "Error loading orders")

    try:
        task = export_orders_to_excel.delay(rows)
    except OperationalError as e:
        logger.error(f"Could not queue order export: {e}")
        raise HTTPException(status_code=503, detail="Export queue unavailable")

    logger.info(f"Queued export of {len(rows)} orders (task {task.id})")
    return ExportResponse(
        success=True,
        message="Export queued",
        task_id=task.id,
        orders=len(rows),
    )


# =============================================================================
# STORE
# =============================================================================

@router.get("/store", response_model=StoreStatus, responses=ERROR_RESPONSES, tags=["Store"])
async def get_store_status(
    service: StoreService = Depends(store_service),
) -> StoreStatus:
    try:
        return await service.get_status()
    except BackendError as e:
        raise backend_failure(e, "Error loading store status")


@router.put("/store", response_model=ActionResult, responses=ERROR_RESPONSES, tags=["Store"])
async def set_store_status(
    data: StoreStatusUpdate,
    service: StoreService = Depends(store_service),
) -> ActionResult:
    try:
        status = await service.set_status(data.is_open)
    except BackendError as e:
        raise backend_failure(e, "Error updating store status")
    return ActionResult(message=f"Store is now {status.label.lower()}", data=status)

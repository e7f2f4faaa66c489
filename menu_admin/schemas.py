"""
Pydantic Schemas for Request/Response Validation

Form payloads are validated and normalized here before they reach the
backend: blank strings become null, the "no-category" sentinel becomes a
null category, comma decimals are accepted. Backend column names that
differ from the API names (estoque, preco_desconto) are
accepted as validation aliases and written back by the to_row() helpers.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


NO_CATEGORY = "no-category"

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(:[0-5]\d(\.\d+)?)?$")


# =============================================================================
# HELPERS
# =============================================================================

def blank_to_none(v: Any) -> Any:
    """Treat empty form inputs as missing values."""
    if isinstance(v, str) and not v.strip():
        return None
    return v


def parse_decimal(v: Any) -> Any:
    """Accept "12,50" as well as "12.50"."""
    v = blank_to_none(v)
    if isinstance(v, str):
        return v.strip().replace(",", ".")
    return v


def normalize_time(v: Optional[str]) -> Optional[str]:
    """
    Validate a time of day and reduce it to HH:MM.

    Postgres time columns come back as "HH:MM:SS".
    """
    if v is None:
        return None
    v = v.strip()
    if not TIME_PATTERN.match(v):
        raise ValueError("Time must be in HH:MM format")
    return v[:5]


# =============================================================================
# ENUMS
# =============================================================================

class ToastVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class OrderStatusEnum(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Weekday(str, Enum):
    """Weekday keys as stored in the schedule table."""
    MONDAY = "segunda"
    TUESDAY = "terca"
    WEDNESDAY = "quarta"
    THURSDAY = "quinta"
    FRIDAY = "sexta"
    SATURDAY = "sabado"
    SUNDAY = "domingo"


WEEKDAY_LABELS = {
    Weekday.MONDAY: "Monday",
    Weekday.TUESDAY: "Tuesday",
    Weekday.WEDNESDAY: "Wednesday",
    Weekday.THURSDAY: "Thursday",
    Weekday.FRIDAY: "Friday",
    Weekday.SATURDAY: "Saturday",
    Weekday.SUNDAY: "Sunday",
}


# =============================================================================
# GENERIC RESPONSES
# =============================================================================

class ActionResult(BaseModel):
    """Outcome of a write action, shown to the user as a toast."""
    success: bool = True
    title: str = "Success"
    message: str
    variant: ToastVariant = ToastVariant.DEFAULT
    data: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    backend: str
    backend_provider: str
    redis: str
    timestamp: datetime


# =============================================================================
# AUTH
# =============================================================================

class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, examples=["admin@menu.local"])
    password: str = Field(..., min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if not re.match(r"^[\w\.\+-]+@[\w\.-]+\.\w+$", v):
            raise ValueError("Invalid email format")
        return v


class UserResponse(BaseModel):
    id: str
    email: str
    role: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


# =============================================================================
# PRODUCTS
# =============================================================================

class ProductCreate(BaseModel):
    """Product form payload, used for both create and update."""
    name: str = Field(..., max_length=200, examples=["Cheeseburger"])
    description: Optional[str] = Field(None, max_length=2000)
    price: float = Field(..., ge=0, examples=[24.9])
    discount_price: Optional[float] = Field(
        None, ge=0, validation_alias=AliasChoices("discount_price", "preco_desconto")
    )
    available: bool = True
    image: Optional[str] = Field(None, max_length=500, examples=["https://example.com/burger.jpg"])
    category_id: Optional[str] = Field(None, examples=[NO_CATEGORY])
    stock: Optional[int] = Field(None, ge=0, validation_alias=AliasChoices("stock", "estoque"))

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("description", "image", mode="before")
    @classmethod
    def empty_text(cls, v: Any) -> Any:
        return blank_to_none(v)

    @field_validator("price", "discount_price", mode="before")
    @classmethod
    def decimal_input(cls, v: Any) -> Any:
        return parse_decimal(v)

    @field_validator("stock", mode="before")
    @classmethod
    def empty_stock(cls, v: Any) -> Any:
        return blank_to_none(v)

    @field_validator("image")
    @classmethod
    def validate_image(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not re.match(r"^https?://\S+$", v):
            raise ValueError("Image must be an http(s) URL")
        return v

    @field_validator("category_id", mode="before")
    @classmethod
    def no_category(cls, v: Any) -> Any:
        v = blank_to_none(v)
        if v == NO_CATEGORY:
            return None
        return v

    def to_row(self) -> dict[str, Any]:
        """Backend row with hosted column names."""
        return {
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "preco_desconto": self.discount_price,
            "available": self.available,
            "image": self.image,
            "category_id": self.category_id,
            "estoque": self.stock,
        }


class Product(BaseModel):
    """Product as stored in the backend."""
    id: str
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    discount_price: Optional[float] = Field(
        None, validation_alias=AliasChoices("discount_price", "preco_desconto")
    )
    available: Optional[bool] = None
    image: Optional[str] = None
    category_id: Optional[str] = None
    stock: Optional[int] = Field(None, validation_alias=AliasChoices("stock", "estoque"))
    created_at: Optional[datetime] = None


class ProductListItem(Product):
    """Product row as shown in the management list."""
    category_name: str
    effective_price: float
    on_sale: bool
    price_display: str
    effective_price_display: str


class ProductListResponse(BaseModel):
    total: int
    products: List[ProductListItem]


class StockUpdate(BaseModel):
    """Inline stock edit; an empty value leaves the stock unchanged."""
    stock: Optional[int] = Field(None, ge=0, validation_alias=AliasChoices("stock", "estoque"))

    @field_validator("stock", mode="before")
    @classmethod
    def empty_stock(cls, v: Any) -> Any:
        return blank_to_none(v)


# =============================================================================
# CATEGORIES
# =============================================================================

class CategoryCreate(BaseModel):
    name: str = Field(..., max_length=100, examples=["Drinks"])
    type: Optional[str] = Field(None, max_length=100, examples=["bebidas"])
    order: Optional[int] = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("type", "order", mode="before")
    @classmethod
    def empty_fields(cls, v: Any) -> Any:
        return blank_to_none(v)

    def to_row(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type, "order": self.order}


class Category(BaseModel):
    id: str
    name: str
    type: Optional[str] = None
    order: Optional[int] = None
    created_at: Optional[datetime] = None


class CategoryOption(BaseModel):
    """Entry of the product form's category picker."""
    id: str
    name: str


# =============================================================================
# DELIVERY
# =============================================================================

class DeliverySettingsUpdate(BaseModel):
    max_km: Optional[float] = Field(None, ge=0, examples=[8.5])
    price: Optional[float] = Field(None, ge=0, examples=[7.0])
    time_min: Optional[int] = Field(None, ge=0, examples=[40])

    @field_validator("max_km", "price", mode="before")
    @classmethod
    def decimal_input(cls, v: Any) -> Any:
        return parse_decimal(v)

    @field_validator("time_min", mode="before")
    @classmethod
    def empty_time(cls, v: Any) -> Any:
        return blank_to_none(v)

    def to_row(self) -> dict[str, Any]:
        return {"max_km": self.max_km, "price": self.price, "time_min": self.time_min}


class DeliverySettings(BaseModel):
    """Delivery settings; id is null until the first save."""
    id: Optional[str] = None
    max_km: Optional[float] = None
    price: Optional[float] = None
    time_min: Optional[int] = None
    price_display: str = "Not set"
    max_distance_display: str = "Not set"
    time_display: str = "Not set"


# =============================================================================
# SCHEDULE
# =============================================================================

class DaySchedule(BaseModel):
    day: Weekday
    label: str
    id: Optional[str] = None
    is_open: bool = False
    open_time: str = "09:00"
    close_time: str = "18:00"


class DayScheduleUpdate(BaseModel):
    day: Weekday
    is_open: bool
    open_time: Optional[str] = None
    close_time: Optional[str] = None

    @field_validator("open_time", "close_time", mode="before")
    @classmethod
    def validate_time(cls, v: Any) -> Any:
        v = blank_to_none(v)
        return normalize_time(v) if isinstance(v, str) else v


class ScheduleUpdate(BaseModel):
    """Days left out keep their current settings."""
    days: List[DayScheduleUpdate] = Field(..., min_length=1, max_length=7)

    @field_validator("days")
    @classmethod
    def unique_days(cls, v: List[DayScheduleUpdate]) -> List[DayScheduleUpdate]:
        keys = [d.day for d in v]
        if len(keys) != len(set(keys)):
            raise ValueError("Each weekday may appear only once")
        return v


class ScheduleResponse(BaseModel):
    days: List[DaySchedule]


# =============================================================================
# ORDERS
# =============================================================================

class Order(BaseModel):
    id: str
    created_at: Optional[datetime] = None
    status: str = ""
    total_value: Optional[float] = None
    net_value: Optional[float] = None
    channel: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("status", mode="before")
    @classmethod
    def missing_status(cls, v: Any) -> Any:
        return "" if v is None else v


class OrderListItem(Order):
    status_label: str
    status_variant: str
    total_display: str
    net_display: str
    created_display: str


class OrderListResponse(BaseModel):
    """total counts every order, regardless of the filters applied."""
    total: int
    orders: List[OrderListItem]


class ExportResponse(BaseModel):
    success: bool
    message: str
    task_id: Optional[str] = None
    orders: int = 0


# =============================================================================
# STORE & DASHBOARD
# =============================================================================

class StoreStatus(BaseModel):
    id: Optional[str] = None
    is_open: bool
    label: str


class StoreStatusUpdate(BaseModel):
    is_open: bool


class DashboardStats(BaseModel):
    total_products: int = 0
    total_categories: int = 0
    total_optionals: int = 0
    store_open: bool = False
    store_status_label: str = "Closed"

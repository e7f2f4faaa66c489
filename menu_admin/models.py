"""
SQLAlchemy Database Models

Mirror of the hosted backend tables used by the dashboard. Column names
follow the hosted schema (Portuguese names included); table names come
from settings.
"""

from sqlalchemy import Column, String, Float, Integer, DateTime, Text, Boolean
from sqlalchemy.sql import func

from menu_admin.core.config import get_settings
from menu_admin.database import Base

settings = get_settings()


class Product(Base):
    """Menu item."""
    __tablename__ = settings.products_table

    id = Column(String(36), primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    preco_desconto = Column(Float, nullable=True)  # discount price
    available = Column(Boolean, default=True, nullable=True)
    image = Column(String(500), nullable=True)
    # No foreign key: deleting a category leaves products pointing at it
    category_id = Column(String(36), nullable=True, index=True)
    estoque = Column(Integer, nullable=True)  # stock
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Product {self.id} - {self.name}>"


class Category(Base):
    """Product category with an optional display order."""
    __tablename__ = settings.categories_table

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False)
    type = Column(String(100), nullable=True)
    order = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Category {self.id} - {self.name}>"


class ProductOptional(Base):
    """Add-on offered with products. Only counted by the dashboard."""
    __tablename__ = settings.optionals_table

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False)
    price = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class DeliverySettings(Base):
    """Single-row delivery pricing table."""
    __tablename__ = settings.delivery_table

    id = Column(String(36), primary_key=True)
    max_km = Column(Float, nullable=True)
    price = Column(Float, nullable=True)
    time_min = Column(Integer, nullable=True)


class OpeningHours(Base):
    """One row per weekday; null times mean closed."""
    __tablename__ = settings.schedule_table

    id = Column(String(36), primary_key=True)
    dia_semana = Column(String(10), nullable=False, index=True)
    hora_inicio = Column(String(8), nullable=True)
    hora_fim = Column(String(8), nullable=True)


class Store(Base):
    """Store open/closed flag."""
    __tablename__ = settings.store_table

    id = Column(String(36), primary_key=True)
    status = Column(Boolean, default=False, nullable=False)


class Order(Base):
    """Customer order as recorded by the ordering channels."""
    __tablename__ = settings.orders_table

    id = Column(String(36), primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    status = Column(String(30), nullable=False, default="pending", index=True)
    total_value = Column(Float, nullable=False, default=0.0)
    net_value = Column(Float, nullable=False, default=0.0)
    channel = Column(String(50), nullable=False, default="Digital Menu")

    def __repr__(self):
        return f"<Order #{self.id} - {self.status}>"

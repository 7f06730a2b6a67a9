from sqlalchemy import (
    Boolean, Column, DateTime, Enum, ForeignKey, Integer, JSON, Numeric, String, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from .database import Base
import enum


def utcnow() -> datetime:
    """Naive UTC timestamp; every stored datetime uses this convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class OrderStatus(str, enum.Enum):
    confirmed = "confirmed"
    delivered = "delivered"
    canceled = "canceled"

class DiscountType(str, enum.Enum):
    percentage = "percentage"
    fixed = "fixed"

class Product(Base):
    __tablename__ = "products"
    __table_args__ = (UniqueConstraint("project_id", "sku", name="uq_products_project_sku"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(String, index=True, nullable=False)
    sku = Column(String, nullable=False)
    name_hr = Column(String)
    name_de = Column(String)
    name_en = Column(String)
    base_price = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String, nullable=False, default="EUR")
    is_active = Column(Boolean, nullable=False, default=True)

    is_discount_active = Column(Boolean, nullable=False, default=False)
    discount_type = Column(Enum(DiscountType), nullable=True)
    discount_value = Column(Numeric(10, 2), nullable=True)
    discount_name = Column(String, nullable=True)
    allowed_categories = Column(JSON, nullable=False, default=list)
    discount_starts_at = Column(DateTime, nullable=True)
    discount_ends_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (UniqueConstraint("project_id", "phone", name="uq_customers_project_phone"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(String, index=True, nullable=False)
    phone = Column(String, nullable=False, index=True)
    pin_hash = Column(String, nullable=False)
    name = Column(String, nullable=True)
    categories = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(String, index=True, nullable=False)
    user_phone = Column(String, index=True, nullable=False)
    user_name = Column(String, nullable=True)
    pin_hash = Column(String, nullable=False)  # hash of the PIN used at confirmation
    pickup_time = Column(String, nullable=True)
    items = Column(JSON, nullable=False, default=dict)  # sku -> quantity
    price_breakdown = Column(JSON, nullable=False, default=list)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String, nullable=False, default="EUR")
    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.confirmed, index=True)
    original_order_id = Column(Integer, ForeignKey("orders.id"), nullable=True)

    client_ip = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    delivered_at = Column(DateTime, nullable=True)
    canceled_at = Column(DateTime, nullable=True)

    original_order = relationship("Order", remote_side=[id])

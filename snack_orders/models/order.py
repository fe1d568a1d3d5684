"""Order model definitions."""

import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, Numeric, String
from snack_orders.database import Base


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Order(Base):
    """Represents an order placed by a user."""
    __tablename__ = "orders"
    __table_args__ = {"sqlite_autoincrement": True}

    # No foreign keys: user deletion cascades in Storage, product deletion
    # leaves order items pointing at the removed id.
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, index=True, nullable=False)
    status = Column(String, default=OrderStatus.PENDING.value, nullable=False)
    total = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    order_date = Column(DateTime, index=True, nullable=False)


class OrderItem(Base):
    """Represents one line of an order with its unit price snapshot."""
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, index=True, nullable=False)
    product_id = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

"""Product model definitions."""

from sqlalchemy import Boolean, Column, Integer, Numeric, String
from snack_orders.database import Base


class Product(Base):
    """Represents an item of the snack catalog."""
    __tablename__ = "products"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, default="")
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String, index=True)
    available = Column(Boolean, default=True, nullable=False)

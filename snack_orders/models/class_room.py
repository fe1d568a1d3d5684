"""Class registry model definitions."""

from sqlalchemy import Column, Integer, String
from snack_orders.database import Base


class ClassRoom(Base):
    __tablename__ = "class_rooms"

    id = Column(Integer, primary_key=True)
    label = Column(String, unique=True, nullable=False)

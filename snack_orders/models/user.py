"""User model definitions."""

from sqlalchemy import Boolean, Column, Integer, String
from snack_orders.database import Base

ADMIN_CLASS_ROOM = "Admin"


class User(Base):
    """Represents a student, representative or staff account."""
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    class_room = Column(String, default="")
    email = Column(String)
    is_admin = Column(Boolean, default=False, nullable=False)
    is_representative = Column(Boolean, default=False, nullable=False)
    is_user_admin = Column(Boolean, default=False, nullable=False)


class ReclaimedUserId(Base):
    """An id freed by a user deletion, handed out again before new ones."""
    __tablename__ = "reclaimed_user_ids"

    user_id = Column(Integer, primary_key=True, autoincrement=False)

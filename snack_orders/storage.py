"""Persistence layer for users, products, orders and the class registry.

``Storage`` wraps one SQLAlchemy session. Every mutating method commits
before returning, so callers never deal with flushing or transactions.
Lookups that miss return ``None`` (``False`` for deletions) instead of
raising; the route layer decides what a miss means over HTTP.
"""

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from snack_orders.models.class_room import ClassRoom
from snack_orders.models.order import Order, OrderItem, OrderStatus
from snack_orders.models.product import Product
from snack_orders.models.user import ADMIN_CLASS_ROOM, ReclaimedUserId, User

logger = logging.getLogger(__name__)

ALL_CATEGORIES = {"tutti", "all"}

DEFAULT_CLASSES = [
    "1A", "2A", "3A", "4A", "5A",
    "1B", "2B", "3B", "4B", "5B",
    "1C", "2C", "3C", "4C", "5C",
    "1D", "2D", "3D", "4D", "5D",
    "1E", "2E", "3E", "4E", "5E",
    "1F", "2F", "3F", "4F", "5F",
    "1G", "2G", "3G",
    "1H", "2H", "3H", "4H", "5H",
    "2L",
]

USER_FIELDS = {
    "username",
    "password_hash",
    "first_name",
    "last_name",
    "class_room",
    "email",
    "is_admin",
    "is_representative",
    "is_user_admin",
}
PRODUCT_FIELDS = {"name", "description", "price", "category", "available"}

CENT = Decimal("0.01")


def to_amount(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT)


class Storage:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    # Users

    def get_user(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return self.db.query(User).filter(User.username == username).first()

    def get_all_users(self) -> list[User]:
        return self.db.query(User).order_by(User.id.asc()).all()

    def _next_reclaimed_user_id(self) -> int | None:
        reclaimed = (
            self.db.query(ReclaimedUserId)
            .order_by(ReclaimedUserId.user_id.asc())
            .first()
        )
        if reclaimed is None:
            return None
        self.db.delete(reclaimed)
        return reclaimed.user_id

    def create_user(self, **fields) -> User:
        unknown = set(fields) - USER_FIELDS
        if unknown:
            raise TypeError(f"Unknown user fields: {sorted(unknown)}")

        user = User(
            class_room="",
            is_admin=False,
            is_representative=False,
            is_user_admin=False,
        )
        for name, value in fields.items():
            setattr(user, name, value)

        reclaimed_id = self._next_reclaimed_user_id()
        if reclaimed_id is not None:
            user.id = reclaimed_id

        self.db.add(user)
        self._commit()
        self.db.refresh(user)
        return user

    def update_user(self, user_id: int, **fields) -> User | None:
        unknown = set(fields) - USER_FIELDS
        if unknown:
            raise TypeError(f"Unknown user fields: {sorted(unknown)}")

        user = self.get_user(user_id)
        if user is None:
            return None

        for name, value in fields.items():
            setattr(user, name, value)
        self._commit()
        self.db.refresh(user)
        return user

    def _delete_user_rows(self, user_id: int) -> tuple[int, int]:
        order_ids = [
            order_id
            for (order_id,) in self.db.query(Order.id).filter(Order.user_id == user_id).all()
        ]
        deleted_items = 0
        if order_ids:
            deleted_items = (
                self.db.query(OrderItem)
                .filter(OrderItem.order_id.in_(order_ids))
                .delete()
            )
            self.db.query(Order).filter(Order.id.in_(order_ids)).delete()

        user = self.get_user(user_id)
        if user is not None:
            self.db.delete(user)
        self.db.add(ReclaimedUserId(user_id=user_id))
        return len(order_ids), deleted_items

    def delete_user(self, user_id: int) -> bool:
        """Delete a user with all of their orders and order items.

        The freed id goes back to the pool used by ``create_user``.
        """
        if self.get_user(user_id) is None:
            return False

        deleted_orders, deleted_items = self._delete_user_rows(user_id)
        self._commit()
        logger.info(
            'Deleted user %s with %s orders and %s order items',
            user_id,
            deleted_orders,
            deleted_items,
        )
        return True

    def delete_users(self, user_ids: list[int]) -> int:
        existing_ids = [
            user_id
            for (user_id,) in self.db.query(User.id).filter(User.id.in_(user_ids)).all()
        ]
        for user_id in existing_ids:
            self._delete_user_rows(user_id)
        self._commit()
        return len(existing_ids)

    # Products

    def get_products(self) -> list[Product]:
        return self.db.query(Product).order_by(Product.id.asc()).all()

    def get_products_by_category(self, category: str | None) -> list[Product]:
        if not category or category.strip().lower() in ALL_CATEGORIES:
            return self.get_products()
        return (
            self.db.query(Product)
            .filter(Product.category == category)
            .order_by(Product.id.asc())
            .all()
        )

    def get_product(self, product_id: int) -> Product | None:
        return self.db.get(Product, product_id)

    def create_product(self, **fields) -> Product:
        unknown = set(fields) - PRODUCT_FIELDS
        if unknown:
            raise TypeError(f"Unknown product fields: {sorted(unknown)}")

        price = to_amount(fields.pop("price"))
        if price < 0:
            raise ValueError("Product price cannot be negative.")

        product = Product(price=price, description="", available=True)
        for name, value in fields.items():
            setattr(product, name, value)

        self.db.add(product)
        self._commit()
        self.db.refresh(product)
        return product

    def update_product(self, product_id: int, **fields) -> Product | None:
        unknown = set(fields) - PRODUCT_FIELDS
        if unknown:
            raise TypeError(f"Unknown product fields: {sorted(unknown)}")

        product = self.get_product(product_id)
        if product is None:
            return None

        if "price" in fields:
            fields["price"] = to_amount(fields["price"])
            if fields["price"] < 0:
                raise ValueError("Product price cannot be negative.")

        for name, value in fields.items():
            setattr(product, name, value)
        self._commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product_id: int) -> bool:
        product = self.get_product(product_id)
        if product is None:
            return False

        self.db.delete(product)
        self._commit()
        return True

    # Orders

    def get_orders(self) -> list[Order]:
        return self.db.query(Order).order_by(Order.id.asc()).all()

    def get_orders_by_user(self, user_id: int) -> list[Order]:
        return (
            self.db.query(Order)
            .filter(Order.user_id == user_id)
            .order_by(Order.id.asc())
            .all()
        )

    def get_orders_by_date(self, day: date | datetime) -> list[Order]:
        if isinstance(day, datetime):
            day = day.date()
        day_start = datetime.combine(day, time.min)
        day_end = day_start + timedelta(days=1)
        return (
            self.db.query(Order)
            .filter(Order.order_date >= day_start, Order.order_date < day_end)
            .order_by(Order.id.asc())
            .all()
        )

    def get_orders_by_class(self, class_room: str) -> list[Order]:
        normalized = class_room.strip().lower()
        return (
            self.db.query(Order)
            .join(User, User.id == Order.user_id)
            .filter(func.lower(User.class_room) == normalized)
            .order_by(Order.id.asc())
            .all()
        )

    def get_order(self, order_id: int) -> Order | None:
        return self.db.get(Order, order_id)

    def create_order(
        self,
        user_id: int,
        total,
        order_date: datetime | None = None,
    ) -> Order:
        amount = to_amount(total)
        if amount < 0:
            raise ValueError("Order total cannot be negative.")

        order = Order(
            user_id=user_id,
            total=amount,
            status=OrderStatus.PENDING.value,
            order_date=order_date or datetime.now(),
            created_at=datetime.now(),
        )
        self.db.add(order)
        self._commit()
        self.db.refresh(order)
        return order

    def update_order_status(self, order_id: int, status: OrderStatus | str) -> Order | None:
        order = self.get_order(order_id)
        if order is None:
            return None

        order.status = OrderStatus(status).value
        self._commit()
        self.db.refresh(order)
        return order

    # Order items

    def get_order_items(self, order_id: int) -> list[OrderItem]:
        return (
            self.db.query(OrderItem)
            .filter(OrderItem.order_id == order_id)
            .order_by(OrderItem.id.asc())
            .all()
        )

    def create_order_item(self, order_id: int, product_id: int, quantity: int, price) -> OrderItem:
        if quantity < 1:
            raise ValueError("Order item quantity must be at least 1.")

        unit_price = to_amount(price)
        if unit_price < 0:
            raise ValueError("Order item price cannot be negative.")

        order_item = OrderItem(
            order_id=order_id,
            product_id=product_id,
            quantity=quantity,
            price=unit_price,
        )
        self.db.add(order_item)
        self._commit()
        self.db.refresh(order_item)
        return order_item

    # Class registry

    def _stored_classes(self) -> list[str]:
        return [
            label
            for (label,) in self.db.query(ClassRoom.label).order_by(ClassRoom.label.asc()).all()
        ]

    def _classes_in_use(self) -> list[str]:
        rows = (
            self.db.query(User.class_room)
            .filter(User.class_room.is_not(None))
            .distinct()
            .all()
        )
        return sorted(
            {
                class_room.strip()
                for (class_room,) in rows
                if class_room and class_room.strip() and class_room.strip() != ADMIN_CLASS_ROOM
            }
        )

    def _replace_classes(self, labels: list[str]) -> None:
        self.db.query(ClassRoom).delete()
        for label in labels:
            self.db.add(ClassRoom(label=label))
        self._commit()

    def get_available_classes(self) -> list[str]:
        stored = self._stored_classes()
        if stored:
            return stored

        classes = self._classes_in_use() or sorted(DEFAULT_CLASSES)
        self._replace_classes(classes)
        return classes

    def update_available_classes(self, labels: list[str]) -> list[str]:
        classes = sorted({label.strip() for label in labels if label and label.strip()})
        self._replace_classes(classes)
        logger.info('Class registry updated with %s classes', len(classes))
        return classes

    def get_users_in_classes(self, labels: list[str]) -> list[User]:
        if not labels:
            return []
        normalized = [label.strip().lower() for label in labels]
        return (
            self.db.query(User)
            .filter(func.lower(User.class_room).in_(normalized))
            .order_by(User.id.asc())
            .all()
        )

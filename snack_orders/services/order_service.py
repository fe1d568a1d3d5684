"""Order placement and status changes."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from snack_orders.models.order import Order, OrderItem, OrderStatus
from snack_orders.storage import Storage, to_amount

logger = logging.getLogger(__name__)

# Every status may move to every other one; nothing is terminal.
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    status: frozenset(OrderStatus) for status in OrderStatus
}


class OrderValidationError(ValueError):
    pass


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int
    price: Decimal


def validate_cart(lines: list[CartLine]) -> None:
    if not lines:
        raise OrderValidationError('The order must contain at least one item.')

    for line in lines:
        if line.product_id is None:
            raise OrderValidationError('Every order item must reference a product.')
        if line.quantity < 1:
            raise OrderValidationError('Order item quantities must be at least 1.')
        if to_amount(line.price) < 0:
            raise OrderValidationError('Order item prices cannot be negative.')


def compute_total(lines: list[CartLine]) -> Decimal:
    return to_amount(sum((to_amount(line.price) * line.quantity for line in lines), Decimal('0')))


def place_order(
    storage: Storage,
    user_id: int,
    total,
    lines: list[CartLine],
    order_date: datetime | None = None,
) -> tuple[Order, list[OrderItem]]:
    """Create an order and one order item per cart line.

    The client-side total must match the sum of the line prices to the cent.
    Each line keeps the unit price it was ordered at, independent of later
    product price changes.
    """
    validate_cart(lines)

    expected_total = compute_total(lines)
    if to_amount(total) != expected_total:
        raise OrderValidationError(
            f'Order total {to_amount(total)} does not match the item total {expected_total}.'
        )

    order = storage.create_order(user_id=user_id, total=expected_total, order_date=order_date)
    items = [
        storage.create_order_item(
            order_id=order.id,
            product_id=line.product_id,
            quantity=line.quantity,
            price=line.price,
        )
        for line in lines
    ]
    logger.info('Order %s placed by user %s with %s items', order.id, user_id, len(items))
    return order, items


def can_transition(current: OrderStatus | str, target: OrderStatus | str) -> bool:
    return OrderStatus(target) in ALLOWED_TRANSITIONS[OrderStatus(current)]


def change_order_status(storage: Storage, order_id: int, status: OrderStatus | str) -> Order | None:
    target = OrderStatus(status)
    order = storage.get_order(order_id)
    if order is None:
        return None

    if not can_transition(order.status, target):
        raise OrderValidationError(f'Cannot move an order from {order.status} to {target.value}.')

    if order.status == target.value:
        return order

    previous = order.status
    updated = storage.update_order_status(order_id, target)
    logger.info('Order %s moved from %s to %s', order_id, previous, target.value)
    return updated

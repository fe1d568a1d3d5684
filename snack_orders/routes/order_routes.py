from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field, field_validator
from sqlalchemy.exc import SQLAlchemyError

from snack_orders.auth.dependencies import get_storage, require_capability
from snack_orders.auth.permissions import Capability
from snack_orders.models.order import Order
from snack_orders.models.user import User
from snack_orders.routes.common import database_unavailable
from snack_orders.schemas import (
    AdminOrderResponse,
    CamelModel,
    OrderItemResponse,
    OrderResponse,
    OrderWithItemsResponse,
    UserSummaryResponse,
)
from snack_orders.services.order_service import CartLine, OrderValidationError, place_order
from snack_orders.storage import Storage

router = APIRouter(tags=['orders'])


class CartProduct(CamelModel):
    id: int
    price: Decimal = Field(ge=0)


class CartItemRequest(CamelModel):
    product: CartProduct
    quantity: int = Field(ge=1)


class CreateOrderRequest(CamelModel):
    # Accepted for compatibility with the web client; orders always belong
    # to the authenticated user.
    user_id: int | None = None
    total: Decimal = Field(ge=0)
    order_date: datetime | None = None
    items: list[CartItemRequest] = Field(min_length=1)

    @field_validator('order_date')
    @classmethod
    def to_local_time(cls, value: datetime | None) -> datetime | None:
        if value is None or value.tzinfo is None:
            return value
        return value.astimezone().replace(tzinfo=None)


def serialize_order_with_items(storage: Storage, order: Order) -> OrderWithItemsResponse:
    return OrderWithItemsResponse(
        **OrderResponse.model_validate(order).model_dump(),
        items=[OrderItemResponse.model_validate(item) for item in storage.get_order_items(order.id)],
    )


def serialize_admin_order(storage: Storage, order: Order) -> AdminOrderResponse:
    owner = storage.get_user(order.user_id)
    return AdminOrderResponse(
        **serialize_order_with_items(storage, order).model_dump(),
        user=UserSummaryResponse.model_validate(owner) if owner is not None else None,
    )


@router.get('/orders', response_model=list[OrderWithItemsResponse])
def list_my_orders(
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_capability(Capability.VIEW_OWN_ORDERS)),
):
    try:
        return [
            serialize_order_with_items(storage, order)
            for order in storage.get_orders_by_user(current_user.id)
        ]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/orders', response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    data: CreateOrderRequest,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(require_capability(Capability.PLACE_ORDER)),
):
    try:
        unknown_products = sorted(
            {item.product.id for item in data.items if storage.get_product(item.product.id) is None}
        )
        if unknown_products:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f'Unknown products: {unknown_products}.',
            )

        order, _items = place_order(
            storage,
            user_id=current_user.id,
            total=data.total,
            lines=[
                CartLine(product_id=item.product.id, quantity=item.quantity, price=item.product.price)
                for item in data.items
            ],
            order_date=data.order_date,
        )
    except OrderValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    return order

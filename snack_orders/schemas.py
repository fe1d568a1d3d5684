"""Response models shared by the route modules.

Field names go over the wire in camelCase to match the web client.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Amounts stay Decimal in Python and go out as JSON numbers.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used='json')]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserResponse(CamelModel):
    id: int
    username: str
    first_name: str
    last_name: str
    class_room: str | None = None
    email: str | None = None
    is_admin: bool
    is_representative: bool
    is_user_admin: bool


class UserSummaryResponse(CamelModel):
    id: int
    first_name: str
    last_name: str
    class_room: str | None = None


class AuthResponse(CamelModel):
    access_token: str
    token_type: str = 'bearer'
    user: UserResponse


class ProductResponse(CamelModel):
    id: int
    name: str
    description: str | None = None
    price: Money
    category: str | None = None
    available: bool


class OrderItemResponse(CamelModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    price: Money


class OrderResponse(CamelModel):
    id: int
    user_id: int
    status: str
    total: Money
    created_at: datetime
    order_date: datetime


class OrderWithItemsResponse(OrderResponse):
    items: list[OrderItemResponse] = []


class AdminOrderResponse(OrderWithItemsResponse):
    user: UserSummaryResponse | None = None


class MessageResponse(BaseModel):
    message: str


class BulkDeleteResponse(BaseModel):
    message: str
    count: int

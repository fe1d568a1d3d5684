from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from snack_orders.routes.order_routes import CreateOrderRequest, create_order, list_my_orders


def _order_request(product_id: int, quantity: int = 2, price: str = '2.00', total: str = '4.00', **extra):
    return CreateOrderRequest.model_validate(
        {
            'total': total,
            'items': [{'product': {'id': product_id, 'price': price, 'name': 'Panino'}, 'quantity': quantity}],
            **extra,
        }
    )


def test_create_order_request_rejects_empty_cart() -> None:
    with pytest.raises(ValidationError):
        CreateOrderRequest(total=Decimal('0'), items=[])


def test_create_order_request_rejects_zero_quantity() -> None:
    with pytest.raises(ValidationError):
        _order_request(product_id=1, quantity=0)


def test_create_order_request_converts_aware_dates_to_local_time() -> None:
    request = _order_request(product_id=1, orderDate='2026-03-02T10:00:00Z')

    expected = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert request.order_date == expected


def test_create_order_scenario(storage, make_user, make_product) -> None:
    user = make_user(class_room='3A')
    product = make_product(price='2.00')

    order = create_order(data=_order_request(product.id), storage=storage, current_user=user)

    assert order.status == 'pending'
    assert order.total == Decimal('4.00')
    items = storage.get_order_items(order.id)
    assert len(items) == 1
    assert items[0].quantity == 2
    assert items[0].price == Decimal('2.00')


def test_create_order_always_belongs_to_current_user(storage, make_user, make_product) -> None:
    user = make_user()
    other = make_user()
    product = make_product()

    order = create_order(
        data=_order_request(product.id, userId=other.id),
        storage=storage,
        current_user=user,
    )

    assert order.user_id == user.id


def test_create_order_rejects_mismatched_total(storage, make_user, make_product) -> None:
    product = make_product()

    with pytest.raises(HTTPException) as exception_info:
        create_order(data=_order_request(product.id, total='3.00'), storage=storage, current_user=make_user())

    assert exception_info.value.status_code == 400
    assert storage.get_orders() == []


def test_create_order_rejects_unknown_products(storage, make_user) -> None:
    with pytest.raises(HTTPException) as exception_info:
        create_order(data=_order_request(product_id=404), storage=storage, current_user=make_user())

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Unknown products: [404].'


def test_list_my_orders_embeds_items_and_hides_other_users(storage, make_user, make_product) -> None:
    user = make_user()
    other = make_user()
    product = make_product()
    mine = create_order(data=_order_request(product.id), storage=storage, current_user=user)
    create_order(data=_order_request(product.id), storage=storage, current_user=other)

    orders = list_my_orders(storage=storage, current_user=user)

    assert [order.id for order in orders] == [mine.id]
    assert [item.quantity for item in orders[0].items] == [2]
    assert orders[0].model_dump(by_alias=True)['userId'] == user.id

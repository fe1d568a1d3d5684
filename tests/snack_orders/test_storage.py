from datetime import date, datetime
from decimal import Decimal

import pytest

from snack_orders.models.order import OrderStatus
from snack_orders.storage import DEFAULT_CLASSES


def test_create_user_defaults_role_flags(make_user) -> None:
    user = make_user()

    assert user.id == 1
    assert user.is_admin is False
    assert user.is_representative is False
    assert user.is_user_admin is False
    assert user.class_room == '3A'


def test_create_user_rejects_unknown_fields(storage) -> None:
    with pytest.raises(TypeError):
        storage.create_user(username='a@scuola.it', nickname='a')


def test_deleted_user_ids_are_reused_smallest_first(storage, make_user) -> None:
    first_id, second_id, third_id = make_user().id, make_user().id, make_user().id

    assert storage.delete_user(second_id) is True
    assert storage.delete_user(first_id) is True

    reused_first = make_user()
    reused_second = make_user()
    fresh = make_user()

    assert reused_first.id == first_id
    assert reused_second.id == second_id
    assert fresh.id == third_id + 1
    ids = [user.id for user in storage.get_all_users()]
    assert len(ids) == len(set(ids))


def test_delete_user_returns_false_for_missing_user(storage) -> None:
    assert storage.delete_user(42) is False


def test_delete_user_cascades_to_orders_and_items(storage, make_user, make_product) -> None:
    owner = make_user()
    other = make_user()
    product = make_product()
    order = storage.create_order(user_id=owner.id, total='4.00')
    storage.create_order_item(order_id=order.id, product_id=product.id, quantity=2, price='2.00')
    other_order = storage.create_order(user_id=other.id, total='2.00')
    storage.create_order_item(order_id=other_order.id, product_id=product.id, quantity=1, price='2.00')
    order_id = order.id

    assert storage.delete_user(owner.id) is True

    assert storage.get_user(owner.id) is None
    assert storage.get_orders_by_user(owner.id) == []
    assert storage.get_order(order_id) is None
    assert storage.get_order_items(order_id) == []
    assert len(storage.get_order_items(other_order.id)) == 1


def test_update_user_returns_none_for_missing_user(storage) -> None:
    assert storage.update_user(99, first_name='Luigi') is None


def test_update_user_changes_only_given_fields(storage, make_user) -> None:
    user = make_user()

    updated = storage.update_user(user.id, is_representative=True)

    assert updated.is_representative is True
    assert updated.first_name == 'Mario'


def test_products_by_all_categories_equals_every_product(storage, make_product) -> None:
    make_product(category='Panini')
    make_product(name='Pizza', category='Pizze')
    make_product(name='Acqua', category='Bevande')

    every_product = [product.id for product in storage.get_products()]

    assert [product.id for product in storage.get_products_by_category('Tutti')] == every_product
    assert [product.id for product in storage.get_products_by_category('All')] == every_product
    assert [product.name for product in storage.get_products_by_category('Pizze')] == ['Pizza']


def test_create_product_defaults_and_rejects_negative_price(storage) -> None:
    product = storage.create_product(name='Cornetto', price=1.2, category='Dolci')

    assert product.available is True
    assert product.price == Decimal('1.20')

    with pytest.raises(ValueError):
        storage.create_product(name='Gratis', price='-0.50', category='Dolci')


def test_product_ids_are_not_reused(storage, make_product) -> None:
    first_id = make_product().id
    second_id = make_product().id

    assert storage.delete_product(second_id) is True
    third = make_product()

    assert third.id == second_id + 1
    assert first_id < third.id


def test_deleting_product_keeps_existing_order_items(storage, make_user, make_product) -> None:
    user = make_user()
    product = make_product(price='2.00')
    order = storage.create_order(user_id=user.id, total='4.00')
    item = storage.create_order_item(order_id=order.id, product_id=product.id, quantity=2, price='2.00')
    product_id = product.id

    assert storage.delete_product(product_id) is True

    items = storage.get_order_items(order.id)
    assert [existing.id for existing in items] == [item.id]
    assert items[0].product_id == product_id
    assert items[0].price == Decimal('2.00')
    assert storage.get_product(product_id) is None


def test_create_order_starts_pending_with_timestamps(storage, make_user) -> None:
    user = make_user()

    order = storage.create_order(user_id=user.id, total=4)

    assert order.status == OrderStatus.PENDING.value
    assert order.total == Decimal('4.00')
    assert order.created_at is not None
    assert order.order_date is not None


def test_create_order_rejects_negative_total(storage, make_user) -> None:
    user = make_user()

    with pytest.raises(ValueError):
        storage.create_order(user_id=user.id, total='-1')


def test_create_order_item_requires_positive_quantity(storage, make_user, make_product) -> None:
    order = storage.create_order(user_id=make_user().id, total=0)

    with pytest.raises(ValueError):
        storage.create_order_item(order_id=order.id, product_id=make_product().id, quantity=0, price='1.00')


def test_order_items_are_returned_for_their_order_only(storage, make_user, make_product) -> None:
    user = make_user()
    products = [make_product(name=f'Prodotto {index}') for index in range(3)]
    order = storage.create_order(user_id=user.id, total='6.00')
    other_order = storage.create_order(user_id=user.id, total='2.00')
    created = {
        storage.create_order_item(order_id=order.id, product_id=product.id, quantity=1, price='2.00').id
        for product in products
    }
    storage.create_order_item(order_id=other_order.id, product_id=products[0].id, quantity=1, price='2.00')

    assert {item.id for item in storage.get_order_items(order.id)} == created


def test_get_orders_by_date_ignores_time_of_day(storage, make_user) -> None:
    user = make_user()
    morning = storage.create_order(user_id=user.id, total=1, order_date=datetime(2026, 3, 2, 8, 15))
    evening = storage.create_order(user_id=user.id, total=1, order_date=datetime(2026, 3, 2, 23, 59))
    storage.create_order(user_id=user.id, total=1, order_date=datetime(2026, 3, 3, 0, 0))

    orders = storage.get_orders_by_date(date(2026, 3, 2))

    assert [order.id for order in orders] == [morning.id, evening.id]
    assert [order.id for order in storage.get_orders_by_date(datetime(2026, 3, 2, 12, 0))] == [
        morning.id,
        evening.id,
    ]


def test_get_orders_by_class_is_case_insensitive(storage, make_user) -> None:
    student = make_user(class_room='3A')
    other = make_user(class_room='4B')
    order = storage.create_order(user_id=student.id, total=1)
    storage.create_order(user_id=other.id, total=1)

    assert [found.id for found in storage.get_orders_by_class('3a')] == [order.id]
    assert storage.get_orders_by_class('5C') == []


def test_update_order_status_accepts_every_status_and_is_idempotent(storage, make_user) -> None:
    order = storage.create_order(user_id=make_user().id, total=1)

    for status in OrderStatus:
        first = storage.update_order_status(order.id, status)
        second = storage.update_order_status(order.id, status.value)
        assert first.status == second.status == status.value

    # Unrestricted graph: a completed order may go back to pending.
    storage.update_order_status(order.id, OrderStatus.COMPLETED)
    assert storage.update_order_status(order.id, 'pending').status == 'pending'


def test_update_order_status_returns_none_for_missing_order(storage) -> None:
    assert storage.update_order_status(404, OrderStatus.COMPLETED) is None


def test_available_classes_fall_back_to_default_list(storage) -> None:
    classes = storage.get_available_classes()

    assert len(classes) == 39
    assert set(classes) == set(DEFAULT_CLASSES)
    assert classes == sorted(classes)


def test_available_classes_are_derived_from_users_and_memoized(storage, make_user) -> None:
    make_user(class_room='3A')
    make_user(class_room='1B')
    make_user(class_room='1B')
    make_user(class_room='Admin', is_admin=True)
    make_user(class_room='', is_user_admin=True)

    assert storage.get_available_classes() == ['1B', '3A']

    make_user(class_room='5C')
    assert storage.get_available_classes() == ['1B', '3A']


def test_update_available_classes_sorts_and_deduplicates(storage) -> None:
    classes = storage.update_available_classes([' 4B', '1A', '4B', ''])

    assert classes == ['1A', '4B']
    assert storage.get_available_classes() == ['1A', '4B']


def test_class_registry_allows_removing_labels_still_in_use(storage, make_user) -> None:
    make_user(class_room='2C')
    storage.update_available_classes(['2C', '3C'])

    assert storage.update_available_classes(['3C']) == ['3C']
    assert [user.class_room for user in storage.get_users_in_classes(['2c'])] == ['2C']

import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('SEED_SAMPLE_PRODUCTS', 'false')

from snack_orders.auth.passwords import hash_password  # noqa: E402
from snack_orders.database import Base  # noqa: E402
from snack_orders.models import class_room, order, product, user  # noqa: E402,F401
from snack_orders.storage import Storage  # noqa: E402

TEST_PASSWORD = 'password123'
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture
def db():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def storage(db):
    return Storage(db)


@pytest.fixture
def make_user(storage):
    counter = {'value': 0}

    def _make_user(**overrides):
        counter['value'] += 1
        fields = {
            'username': f"user{counter['value']}@scuola.it",
            'password_hash': TEST_PASSWORD_HASH,
            'first_name': 'Mario',
            'last_name': 'Rossi',
            'class_room': '3A',
        }
        fields.update(overrides)
        return storage.create_user(**fields)

    return _make_user


@pytest.fixture
def make_product(storage):
    def _make_product(**overrides):
        fields = {
            'name': 'Panino',
            'description': 'Panino al prosciutto',
            'price': '2.00',
            'category': 'Panini',
        }
        fields.update(overrides)
        return storage.create_product(**fields)

    return _make_product

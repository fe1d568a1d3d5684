import logging

from snack_orders.auth.passwords import hash_password
from snack_orders.core import config
from snack_orders.models.user import ADMIN_CLASS_ROOM
from snack_orders.storage import Storage

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    {
        'name': 'Panino al prosciutto',
        'description': 'Panino con prosciutto cotto e formaggio',
        'price': '2.50',
        'category': 'Panini',
        'available': True,
    },
    {
        'name': 'Pizza margherita',
        'description': 'Trancio di pizza con pomodoro e mozzarella',
        'price': '1.80',
        'category': 'Pizze',
        'available': True,
    },
    {
        'name': 'Focaccia al rosmarino',
        'description': 'Focaccia con olio e rosmarino',
        'price': '1.50',
        'category': 'Focacce',
        'available': True,
    },
    {
        'name': 'Cornetto alla crema',
        'description': 'Cornetto sfogliato con ripieno alla crema',
        'price': '1.20',
        'category': 'Dolci',
        'available': True,
    },
    {
        'name': 'Panino vegetariano',
        'description': 'Panino con verdure grigliate e formaggio',
        'price': '2.20',
        'category': 'Panini',
        'available': False,
    },
    {
        'name': 'Acqua naturale 0.5L',
        'description': "Bottiglia d'acqua naturale da 0.5 litri",
        'price': '0.80',
        'category': 'Bevande',
        'available': True,
    },
]


def seed_sample_products(storage: Storage) -> int:
    if storage.get_products():
        return 0

    for product in SAMPLE_PRODUCTS:
        storage.create_product(**product)
    logger.info('Seeded %s sample products', len(SAMPLE_PRODUCTS))
    return len(SAMPLE_PRODUCTS)


def ensure_bootstrap_admin(storage: Storage, username: str, password: str) -> bool:
    username = username.strip().lower()
    if not username or not password:
        return False
    if storage.get_user_by_username(username) is not None:
        return False

    storage.create_user(
        username=username,
        password_hash=hash_password(password),
        first_name='Admin',
        last_name='Utente',
        class_room=ADMIN_CLASS_ROOM,
        email=username,
        is_admin=True,
        is_user_admin=True,
    )
    logger.info('Created bootstrap admin %s', username)
    return True


def seed_database(storage: Storage) -> None:
    if config.SEED_SAMPLE_PRODUCTS:
        seed_sample_products(storage)
    ensure_bootstrap_admin(
        storage,
        config.BOOTSTRAP_ADMIN_USERNAME,
        config.BOOTSTRAP_ADMIN_PASSWORD,
    )

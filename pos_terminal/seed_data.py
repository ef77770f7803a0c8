# ==============================================================================
# DEMO DATA
# ==============================================================================
# Catalog, categories and users loaded at startup when SEED_DEMO_DATA is on.
# Every demo user has the password "password123".
# ==============================================================================

import logging

from pos_terminal.models import Role

logger = logging.getLogger(__name__)

DEMO_PASSWORD = 'password123'

DEMO_CATEGORIES = [
    {'name': 'Beverages', 'description': 'Drinks and refreshments'},
    {'name': 'Food', 'description': 'Food items'},
    {'name': 'Snacks', 'description': 'Snacks and treats'},
    {'name': 'Electronics', 'description': 'Electronic devices'},
]

DEMO_PRODUCTS = [
    {
        'name': 'Coca Cola',
        'sku': 'BEV001',
        'price': '2.50',
        'cost': '1.50',
        'stock': 100,
        'category': 'Beverages',
        'barcode': '1234567890123',
    },
    {
        'name': 'Sandwich',
        'sku': 'FOOD001',
        'price': '5.00',
        'cost': '2.50',
        'stock': 50,
        'category': 'Food',
        'barcode': '1234567890124',
    },
    {
        'name': 'Chips',
        'sku': 'SNACK001',
        'price': '1.50',
        'cost': '0.75',
        'stock': 200,
        'category': 'Snacks',
        'barcode': '1234567890125',
    },
]

DEMO_USERS = [
    {'username': 'admin', 'email': 'admin@pos.com', 'role': Role.ADMIN},
    {'username': 'cashier1', 'email': 'cashier@pos.com', 'role': Role.CASHIER},
    {'username': 'manager1', 'email': 'manager@pos.com', 'role': Role.MANAGER},
]


def seed_demo_data(container) -> None:
    """
    Loads the demo data into an empty container.

    Args:
        container: AppContainer to fill
    """
    catalog = container.catalog_service

    for category in DEMO_CATEGORIES:
        catalog.add_category(category['name'], category['description'])

    for product in DEMO_PRODUCTS:
        catalog.add_product(product)

    for user in DEMO_USERS:
        container.user_service.create_user(
            user['username'], user['email'], user['role'], DEMO_PASSWORD
        )

    logger.info(
        "Demo data loaded: %d categories, %d products, %d users",
        len(DEMO_CATEGORIES), len(DEMO_PRODUCTS), len(DEMO_USERS)
    )

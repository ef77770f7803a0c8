import pytest

from pos_terminal import performance_logger
from pos_terminal.app_container import AppContainer
from pos_terminal.config import TestConfig
from pos_terminal.main import create_app
from pos_terminal.seed_data import DEMO_PASSWORD, seed_demo_data


@pytest.fixture(autouse=True)
def no_profiling():
    performance_logger.configure(enabled=False)
    yield
    performance_logger.reset_stats()


@pytest.fixture
def container():
    """Fresh terminal with the demo catalog and users."""
    c = AppContainer(tax_rate=10, low_stock_alert=10)
    seed_demo_data(c)
    return c


@pytest.fixture
def catalog(container):
    return container.catalog_service


@pytest.fixture
def cart(container):
    return container.cart_service


@pytest.fixture
def checkout(container):
    return container.checkout_service


@pytest.fixture
def inventory_log(container):
    return container.inventory_log_service


@pytest.fixture
def cashier(container):
    return container.user_service.get_user_by_username('cashier1')


@pytest.fixture
def admin(container):
    return container.user_service.get_user_by_username('admin')


def product_by_sku(catalog, sku):
    return next(p for p in catalog.get_products() if p.sku == sku)


@pytest.fixture
def coca_cola(catalog):
    return product_by_sku(catalog, 'BEV001')


@pytest.fixture
def sandwich(catalog):
    return product_by_sku(catalog, 'FOOD001')


@pytest.fixture
def chips(catalog):
    return product_by_sku(catalog, 'SNACK001')


# ─── Flask ────────────────────────────────────────────────────────────────────

@pytest.fixture
def app(tmp_path):
    class _Config(TestConfig):
        LOGS_DIR = str(tmp_path / 'logs')

    return create_app(_Config)


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


def login(client, username, password=DEMO_PASSWORD):
    r = client.post('/login', json={'username': username, 'password': password})
    assert r.status_code == 200, r.get_json()
    return r

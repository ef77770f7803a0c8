import csv
import io

import pytest

from conftest import login
from pos_terminal import config
from pos_terminal.main import create_app
from pos_terminal.models import InventoryLogType


def _product_id(client, sku):
    r = client.get('/pos/products')
    return next(p['id'] for p in r.get_json()['products'] if p['sku'] == sku)


def _container(app):
    return app.extensions['pos']


# ─── Session & guards ─────────────────────────────────────────────────────────

def test_login_sets_session(client):
    r = login(client, 'admin')
    assert r.get_json()['user']['role'] == 'admin'

    with client.session_transaction() as sess:
        assert sess['auth']['username'] == 'admin'
        assert isinstance(sess['auth']['timestamp'], int)
        assert sess['role'] == 'admin'


def test_login_rejects_bad_password(client):
    r = client.post('/login', json={'username': 'admin', 'password': 'nope'})

    assert r.status_code == 401
    assert r.get_json() == {'ok': False, 'error': 'Invalid username or password'}


def test_logout_clears_session(client):
    login(client, 'admin')
    client.post('/logout')

    with client.session_transaction() as sess:
        assert 'auth' not in sess
    assert client.get('/dashboard').status_code == 302


@pytest.mark.parametrize('path', ['/dashboard', '/pos/cart', '/inventory/products', '/users'])
def test_unauthenticated_redirects_to_login(client, path):
    r = client.get(path)

    assert r.status_code == 302
    assert r.headers['Location'].endswith('/login')


@pytest.mark.parametrize('username, path, allowed', [
    ('cashier1', '/pos/cart', True),
    ('cashier1', '/inventory/products', False),
    ('cashier1', '/settings', False),
    ('cashier1', '/transactions', True),
    ('manager1', '/pos/cart', False),
    ('manager1', '/inventory/products', True),
    ('manager1', '/analytics/report', True),
    ('manager1', '/users', False),
    ('admin', '/pos/cart', True),
    ('admin', '/users', True),
    ('admin', '/settings', True),
])
def test_role_guards(client, username, path, allowed):
    login(client, username)
    r = client.get(path)

    if allowed:
        assert r.status_code == 200
    else:
        assert r.status_code == 302
        assert r.headers['Location'].endswith('/dashboard')


def test_role_change_applies_to_logged_in_user(app, client):
    login(client, 'manager1')
    assert client.get('/settings').status_code == 200

    users = _container(app).user_service
    manager = users.get_user_by_username('manager1')
    users.update_user(manager.id, role='cashier')

    r = client.get('/settings')
    assert r.status_code == 302
    assert r.headers['Location'].endswith('/dashboard')
    assert client.get('/pos/cart').status_code == 200


def test_dashboard(client):
    login(client, 'manager1')
    data = client.get('/dashboard').get_json()

    assert data['user']['username'] == 'manager1'
    assert data['stats']['total_products'] == 3


# ─── CSRF ─────────────────────────────────────────────────────────────────────

@pytest.fixture
def csrf_client(tmp_path):
    class _Config(config.TestConfig):
        CSRF_ENABLED = True
        LOGS_DIR = str(tmp_path / 'logs')

    with create_app(_Config).test_client() as c:
        yield c


def test_csrf_token_required(csrf_client):
    r = csrf_client.post('/login', json={'username': 'admin', 'password': 'password123'})
    assert r.status_code == 403

    token = csrf_client.get('/api/session').get_json()['csrf_token']
    r = csrf_client.post(
        '/login',
        json={'username': 'admin', 'password': 'password123'},
        headers={'X-CSRF-Token': token}
    )
    assert r.status_code == 200

    r = csrf_client.post('/pos/cart/clear', json={'csrf_token': token})
    assert r.status_code == 200


# ─── POS ──────────────────────────────────────────────────────────────────────

def test_cart_and_cash_checkout(app, client):
    login(client, 'cashier1')
    coke = _product_id(client, 'BEV001')

    r = client.post('/pos/cart/add', json={'product_id': coke, 'quantity': 3})
    cart = r.get_json()['cart']
    assert cart['subtotal'] == pytest.approx(7.50)
    assert cart['total'] == pytest.approx(8.25)

    r = client.post('/pos/checkout', json={'payment_method': 'cash', 'cash_received': 10})
    assert r.status_code == 200
    transaction = r.get_json()['transaction']
    assert transaction['total'] == pytest.approx(8.25)
    assert transaction['change_due'] == pytest.approx(1.75)
    assert transaction['cashier_name'] == 'cashier1'

    assert client.get('/pos/cart').get_json()['cart']['items'] == []
    assert _container(app).catalog_service.get_product_by_id(coke).stock == 97


def test_checkout_errors_keep_cart(client):
    login(client, 'cashier1')

    r = client.post('/pos/checkout', json={'payment_method': 'card'})
    assert r.status_code == 400
    assert r.get_json() == {'ok': False, 'error': 'Cart is empty'}

    coke = _product_id(client, 'BEV001')
    client.post('/pos/cart/add', json={'product_id': coke, 'quantity': 3})
    r = client.post('/pos/checkout', json={'payment_method': 'cash', 'cash_received': 5})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Insufficient cash received'
    assert client.get('/pos/cart').get_json()['cart']['total_items'] == 3


def test_add_to_cart_checks_stock(app, client):
    login(client, 'cashier1')
    coke = _product_id(client, 'BEV001')

    r = client.post('/pos/cart/add', json={'product_id': coke, 'quantity': 101})
    assert r.status_code == 400

    client.post('/pos/cart/add', json={'product_id': coke, 'quantity': 100})
    r = client.post('/pos/cart/add', json={'product_id': coke, 'quantity': 1})
    assert r.status_code == 400

    r = client.post('/pos/cart/add', json={'product_id': 'missing'})
    assert r.status_code == 404


def test_cart_update_and_remove(client):
    login(client, 'cashier1')
    coke = _product_id(client, 'BEV001')
    chips = _product_id(client, 'SNACK001')
    client.post('/pos/cart/add', json={'product_id': coke})
    client.post('/pos/cart/add', json={'product_id': chips})

    cart = client.post('/pos/cart/update', json={'product_id': coke, 'quantity': 4}).get_json()['cart']
    assert cart['total_items'] == 5

    cart = client.post('/pos/cart/remove', json={'product_id': chips}).get_json()['cart']
    assert cart['total_items'] == 4

    cart = client.post('/pos/cart/update', json={'product_id': coke, 'quantity': 0}).get_json()['cart']
    assert cart['items'] == []


@pytest.mark.parametrize('path', ['/pos/cart/add', '/pos/cart/update'])
def test_fractional_cart_quantity_is_rejected(client, path):
    login(client, 'cashier1')
    coke = _product_id(client, 'BEV001')
    client.post('/pos/cart/add', json={'product_id': coke})

    r = client.post(path, json={'product_id': coke, 'quantity': 2.5})

    assert r.status_code == 400
    assert r.get_json()['error'] == 'quantity must be an integer'
    assert client.get('/pos/cart').get_json()['cart']['total_items'] == 1


def test_product_filter_by_category(client):
    login(client, 'cashier1')

    products = client.get('/pos/products?category=Snacks').get_json()['products']
    assert [p['sku'] for p in products] == ['SNACK001']

    products = client.get('/pos/products?q=1234567890123').get_json()['products']
    assert [p['sku'] for p in products] == ['BEV001']


# ─── Inventory ────────────────────────────────────────────────────────────────

def test_inventory_product_lifecycle(app, client):
    login(client, 'manager1')

    r = client.post('/inventory/products', json={
        'name': 'Water', 'sku': 'BEV002', 'price': 1.0, 'cost': 0.4,
        'stock': 20, 'category': 'Beverages',
    })
    assert r.status_code == 201
    product = r.get_json()['product']

    r = client.post('/inventory/products', json={
        'name': 'Other', 'sku': 'bev002', 'price': 1, 'cost': 1, 'stock': 1, 'category': 'Food',
    })
    assert r.status_code == 400

    r = client.put(f"/inventory/products/{product['id']}", json={'price': 1.25})
    assert r.get_json()['product']['price'] == 1.25

    r = client.put(f"/inventory/products/{product['id']}", json={'stock': 999})
    assert r.status_code == 400

    r = client.post(f"/inventory/products/{product['id']}/stock", json={'type': 'out', 'quantity': 5})
    assert r.get_json()['product']['stock'] == 15

    logs = client.get(f"/inventory/logs?product_id={product['id']}").get_json()['logs']
    assert [log['type'] for log in logs] == ['stock_out', 'stock_in']
    assert logs[0]['user_name'] == 'manager1'

    assert client.delete(f"/inventory/products/{product['id']}").status_code == 200
    assert client.delete(f"/inventory/products/{product['id']}").status_code == 404


def test_stock_conflict_returns_409(client):
    login(client, 'manager1')
    chips = _admin_product_id(client, 'SNACK001')

    r = client.post(
        f'/inventory/products/{chips}/stock',
        json={'type': 'in', 'quantity': 5, 'expected_stock': 150}
    )
    assert r.status_code == 409

    r = client.post(
        f'/inventory/products/{chips}/stock',
        json={'type': 'adjust', 'quantity': 180, 'expected_stock': 200}
    )
    assert r.get_json()['product']['stock'] == 180


def test_stock_out_below_zero_is_rejected(client):
    login(client, 'manager1')
    coke = _admin_product_id(client, 'BEV001')

    r = client.post(f'/inventory/products/{coke}/stock', json={'type': 'out', 'quantity': 500})
    assert r.status_code == 400

    r = client.post(f'/inventory/products/{coke}/stock', json={'type': 'move', 'quantity': 1})
    assert r.status_code == 400


def test_categories(client):
    login(client, 'admin')

    r = client.post('/inventory/categories', json={'name': 'Dairy'})
    assert r.status_code == 201
    names = [c['name'] for c in client.get('/inventory/categories').get_json()['categories']]
    assert 'Dairy' in names


def test_inventory_filter_by_category(client):
    login(client, 'manager1')

    products = client.get('/inventory/products?category=Food').get_json()['products']
    assert [p['sku'] for p in products] == ['FOOD001']

    products = client.get('/inventory/products?category=All').get_json()['products']
    assert len(products) == 3


def _admin_product_id(client, sku):
    products = client.get('/inventory/products').get_json()['products']
    return next(p['id'] for p in products if p['sku'] == sku)


# ─── Transactions & analytics ─────────────────────────────────────────────────

def _sell_coke(client, quantity=2):
    coke = _product_id(client, 'BEV001')
    client.post('/pos/cart/add', json={'product_id': coke, 'quantity': quantity})
    return client.post('/pos/checkout', json={'payment_method': 'card'}).get_json()['transaction']


def test_transactions_list_detail_and_export(client):
    login(client, 'admin')
    first = _sell_coke(client)
    second = _sell_coke(client, 1)

    listed = client.get('/transactions').get_json()['transactions']
    assert [t['id'] for t in listed] == [second['id'], first['id']]
    assert len(client.get('/transactions?limit=1').get_json()['transactions']) == 1
    assert client.get('/transactions?q=T000001').get_json()['transactions'][0]['id'] == first['id']

    detail = client.get(f"/transactions/{first['id']}").get_json()['transaction']
    assert detail['total'] == pytest.approx(5.50)
    assert client.get('/transactions/T999999').status_code == 404

    r = client.get('/transactions/export')
    assert r.mimetype == 'text/csv'
    assert 'attachment' in r.headers['Content-Disposition']
    rows = list(csv.reader(io.StringIO(r.get_data(as_text=True))))
    assert rows[0][0] == 'Transaction ID'
    assert len(rows) == 3


def test_export_follows_search(client):
    login(client, 'admin')
    _sell_coke(client)
    coke = _product_id(client, 'BEV001')
    client.post('/pos/cart/add', json={'product_id': coke})
    digital = client.post('/pos/checkout', json={'payment_method': 'digital'}).get_json()['transaction']

    r = client.get('/transactions/export?q=digital')
    rows = list(csv.reader(io.StringIO(r.get_data(as_text=True))))

    assert len(rows) == 2
    assert rows[1][0] == digital['id']
    assert rows[1][7] == 'digital'


def test_negative_limit_is_rejected(client):
    login(client, 'admin')
    _sell_coke(client)

    r = client.get('/transactions?limit=-1')

    assert r.status_code == 400
    assert r.get_json()['error'] == 'limit cannot be negative'


def test_sale_log_attributed_to_cashier(app, client):
    login(client, 'cashier1')
    transaction = _sell_coke(client)

    logs = _container(app).inventory_log_service.query_by_type(InventoryLogType.SALE)
    assert len(logs) == 1
    assert logs[0].reason == f"Sale - Transaction {transaction['id']}"
    assert logs[0].user_name == 'cashier1'


def test_analytics_report(client):
    login(client, 'admin')
    _sell_coke(client)

    report = client.get('/analytics/report').get_json()['report']
    assert report['total_transactions'] == 1

    assert client.get('/analytics/report?date=2020-01-01').get_json()['report']['total_sales'] == 0
    assert client.get('/analytics/report?date=01/01/2020').status_code == 400


# ─── Users & settings ─────────────────────────────────────────────────────────

def test_user_management(client):
    login(client, 'admin')

    r = client.post('/users', json={
        'username': 'cashier2', 'email': 'c2@pos.com', 'role': 'cashier', 'password': 'secret1',
    })
    assert r.status_code == 201
    user_id = r.get_json()['user']['id']
    assert 'password_hash' not in r.get_json()['user']

    r = client.put(f'/users/{user_id}', json={'role': 'manager'})
    assert r.get_json()['user']['role'] == 'manager'

    r = client.post(f'/users/{user_id}/password', json={
        'new_password': 'another1', 'confirm_password': 'another1',
    })
    assert r.status_code == 200

    assert client.delete(f'/users/{user_id}').status_code == 200
    assert client.delete(f'/users/{user_id}').status_code == 404


def test_user_update_rejects_non_text_email(client):
    login(client, 'admin')
    manager_id = next(
        u['id'] for u in client.get('/users').get_json()['users'] if u['username'] == 'manager1'
    )

    r = client.put(f'/users/{manager_id}', json={'email': 123})

    assert r.status_code == 400
    assert r.get_json()['error'] == 'Email must be text'


def test_admin_cannot_delete_self(client):
    r = login(client, 'admin')
    own_id = r.get_json()['user']['id']

    assert client.delete(f'/users/{own_id}').status_code == 400


def test_settings_tax_rate_drives_cart(client):
    login(client, 'admin')

    r = client.post('/settings', json={'tax_rate': 20})
    assert r.get_json()['settings']['tax_rate'] == 20.0

    coke = _product_id(client, 'BEV001')
    cart = client.post('/pos/cart/add', json={'product_id': coke, 'quantity': 2}).get_json()['cart']
    assert cart['total'] == pytest.approx(6.00)

    r = client.post('/settings/reset')
    assert r.get_json()['settings']['tax_rate'] == 10.0

    assert client.post('/settings', json={'tax_rate': -1}).status_code == 400


def test_security_headers(client):
    r = client.get('/api/session')

    assert r.headers['X-Frame-Options'] == 'DENY'
    assert r.headers['X-Content-Type-Options'] == 'nosniff'

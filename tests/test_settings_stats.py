from datetime import timedelta
from decimal import Decimal

import pytest

from pos_terminal.errors import ValidationError
from pos_terminal.models import Actor, utcnow


@pytest.fixture
def settings(container):
    return container.settings_service


@pytest.fixture
def stats(container):
    return container.stats_service


def _sell(cart, checkout, cashier, product, quantity):
    cart.clear_cart()
    cart.add_to_cart(product, quantity)
    return checkout.checkout(cart.snapshot(), 'card', cashier)


# ─── Settings ─────────────────────────────────────────────────────────────────

def test_default_settings(settings):
    current = settings.get_settings()

    assert current.tax_rate == Decimal('10')
    assert current.low_stock_alert == 10
    assert current.currency == 'USD'
    assert settings.get_tax_rate() == Decimal('0.1')


def test_update_and_reset(settings):
    settings.update_settings({'store_name': 'Corner Shop', 'tax_rate': '7.5', 'require_login': True})

    current = settings.get_settings()
    assert current.store_name == 'Corner Shop'
    assert settings.get_tax_rate() == Decimal('0.075')
    assert current.require_login is True

    settings.reset_settings()
    assert settings.get_settings().store_name == 'My POS Store'
    assert settings.get_tax_rate() == Decimal('0.1')


@pytest.mark.parametrize('values', [
    {'tax_rate': 150},
    {'tax_rate': 'abc'},
    {'low_stock_alert': -1},
    {'auto_print_receipt': 'yes'},
    {'unknown_key': 1},
])
def test_update_settings_validation(settings, values):
    with pytest.raises(ValidationError):
        settings.update_settings(values)
    assert settings.get_settings().tax_rate == Decimal('10')


def test_get_settings_returns_copy(settings):
    current = settings.get_settings()
    current.store_name = 'Changed'

    assert settings.get_settings().store_name == 'My POS Store'


# ─── Stats ────────────────────────────────────────────────────────────────────

def test_dashboard_stats(container, stats, cart, checkout, cashier, coca_cola, sandwich):
    _sell(cart, checkout, cashier, coca_cola, 3)
    _sell(cart, checkout, cashier, sandwich, 1)
    container.catalog_service.set_stock(sandwich.id, 5, Actor.from_user(cashier))

    data = stats.dashboard_stats()

    assert data['total_transactions'] == 2
    assert data['total_sales'] == pytest.approx(8.25 + 5.50)
    assert data['today_transactions'] == 2
    assert data['today_sales'] == pytest.approx(13.75)
    assert data['total_products'] == 3
    assert data['low_stock_products'] == 1
    assert len(data['daily_sales']) == 7
    assert data['daily_sales'][-1]['sales'] == pytest.approx(13.75)
    assert data['daily_sales'][0]['sales'] == 0.0
    assert [p['name'] for p in data['top_products']] == ['Coca Cola', 'Sandwich']
    assert data['top_products'][0]['quantity'] == 3


def test_dashboard_daily_sales_window(stats, cart, checkout, cashier, coca_cola):
    _sell(cart, checkout, cashier, coca_cola, 1)

    data = stats.dashboard_stats(now=utcnow() + timedelta(days=10))

    assert data['today_transactions'] == 0
    assert all(day['sales'] == 0.0 for day in data['daily_sales'])
    assert data['total_transactions'] == 1


def test_sales_report(stats, cart, checkout, cashier, coca_cola, chips):
    _sell(cart, checkout, cashier, coca_cola, 2)
    _sell(cart, checkout, cashier, chips, 4)

    report = stats.sales_report(utcnow().date())

    assert report['total_transactions'] == 2
    assert report['total_sales'] == pytest.approx(5.50 + 6.60)
    assert report['average_order_value'] == pytest.approx(6.05)
    assert report['top_products'][0]['name'] == 'Chips'
    assert report['top_products'][0]['revenue'] == pytest.approx(6.00)


def test_sales_report_empty_day(stats):
    report = stats.sales_report(utcnow().date() - timedelta(days=30))

    assert report['total_transactions'] == 0
    assert report['average_order_value'] == 0.0
    assert report['top_products'] == []
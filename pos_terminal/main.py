# ==============================================================================
# POS TERMINAL - Flask application
# ==============================================================================
# HTTP layer: session auth, CSRF check, role guards and JSON routes.
# Routes only translate request -> service -> response; every business rule
# lives in the services (see app_container.py).
#
# ROLES (flat, each route lists who may enter):
#   dashboard, transactions    → any logged-in user
#   pos                        → admin, cashier
#   inventory, analytics,
#   settings                   → admin, manager
#   users                      → admin
# ==============================================================================

import logging
import time
import uuid
from datetime import datetime
from functools import wraps

from flask import (
    Blueprint,
    Flask,
    Response,
    current_app,
    jsonify,
    redirect,
    request,
    session,
    url_for,
)

from pos_terminal.app_container import AppContainer
from pos_terminal.config import Config, warn_unsafe_defaults
from pos_terminal.errors import NotFoundError, PosError, ValidationError
from pos_terminal.models import Actor, Role, to_int, utcnow
from pos_terminal.performance_logger import init_profiling
from pos_terminal.seed_data import seed_demo_data

logger = logging.getLogger(__name__)

ANY_ROLE = (Role.ADMIN, Role.MANAGER, Role.CASHIER)
POS_ROLES = (Role.ADMIN, Role.CASHIER)
BACK_OFFICE_ROLES = (Role.ADMIN, Role.MANAGER)
ADMIN_ROLES = (Role.ADMIN,)

STOCK_ACTIONS = ('in', 'out', 'adjust')

terminal = Blueprint('terminal', __name__)


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def get_container() -> AppContainer:
    return current_app.extensions['pos']


def _payload() -> dict:
    """JSON body, or the form fields for classic form posts."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def _current_user():
    return get_container().user_service.get_user(session['user_id'])


def _current_actor() -> Actor:
    return Actor.from_user(_current_user())


def _to_int(value, field_name, default=None):
    if value in (None, ''):
        if default is None:
            raise ValidationError(f"{field_name} is required")
        return default
    try:
        return to_int(value, field_name)
    except ValueError as e:
        raise ValidationError(str(e))


def _ok(**data):
    return jsonify(dict(ok=True, **data))


# ═══════════════════════════════════════════════════════════════════════════════
# AUTH DECORATORS
# ═══════════════════════════════════════════════════════════════════════════════

def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if 'auth' not in session:
            return redirect(url_for('terminal.login'))
        # The account may have been deleted since login
        if get_container().user_repo.get_by_id(session.get('user_id')) is None:
            session.clear()
            return redirect(url_for('terminal.login'))
        return f(*args, **kwargs)
    return wrapper


def role_required(*roles):
    """
    Lets the request through only for the listed roles.
    Any other role is sent back to the dashboard.

    The role is read from the stored account, not the session, so a role
    change made by an admin applies on the user's next request.
    """
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            container = get_container()
            user = container.user_repo.get_by_id(session.get('user_id'))
            if user is None or not container.user_service.check_permission(user.role, roles):
                return redirect(url_for('terminal.dashboard'))
            session['role'] = user.role.value
            return f(*args, **kwargs)
        return wrapper
    return deco


def generate_csrf_token():
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if current_app.config.get('CSRF_ENABLED', True) and request.method in ('POST', 'PUT', 'DELETE'):
            token = session.get('csrf_token')
            # Header first, then form field, then JSON body
            sent_token = (
                request.headers.get('X-CSRF-Token') or
                request.form.get('csrf_token')
            )
            if not sent_token and request.is_json:
                json_data = request.get_json(silent=True) or {}
                sent_token = json_data.get('csrf_token')

            if not token or not sent_token or token != sent_token:
                return jsonify({'ok': False, 'error': 'Invalid CSRF token'}), 403
        return f(*args, **kwargs)
    return wrapper


# ═══════════════════════════════════════════════════════════════════════════════
# SESSION
# ═══════════════════════════════════════════════════════════════════════════════

@terminal.route('/api/session', methods=['GET'])
def api_session():
    """CSRF token plus the logged-in user, if any."""
    user = None
    if 'auth' in session:
        found = get_container().user_repo.get_by_id(session.get('user_id'))
        user = found.to_dict() if found else None
    return _ok(
        csrf_token=generate_csrf_token(),
        authenticated=user is not None,
        user=user
    )


@terminal.route('/', methods=['GET'])
def index():
    return redirect(url_for('terminal.dashboard'))


@terminal.route('/login', methods=['GET', 'POST'])
@verify_csrf
def login():
    if request.method == 'GET':
        return _ok(authenticated='auth' in session, csrf_token=generate_csrf_token())

    data = _payload()
    username = str(data.get('username') or '').strip()
    password = data.get('password') or ''
    if not username or not password:
        raise ValidationError("Username and password are required")

    user = get_container().user_service.authenticate(username, password)

    csrf_token = session.get('csrf_token')
    session.clear()
    session.permanent = True
    session['auth'] = {'username': user.username, 'timestamp': int(time.time() * 1000)}
    session['user_id'] = user.id
    session['user'] = user.username
    session['role'] = user.role.value
    if csrf_token:
        session['csrf_token'] = csrf_token

    return _ok(user=user.to_dict())


@terminal.route('/logout', methods=['POST'])
@verify_csrf
def logout():
    user = session.get('user')
    session.clear()
    if user:
        logger.info("User %s logged out", user)
    return _ok()


@terminal.route('/dashboard', methods=['GET'])
@login_required
@role_required(*ANY_ROLE)
def dashboard():
    container = get_container()
    return _ok(
        user=_current_user().to_dict(),
        stats=container.stats_service.dashboard_stats()
    )


# ═══════════════════════════════════════════════════════════════════════════════
# POS
# ═══════════════════════════════════════════════════════════════════════════════

@terminal.route('/pos/products', methods=['GET'])
@login_required
@role_required(*POS_ROLES)
def pos_products():
    catalog = get_container().catalog_service
    query = (request.args.get('q') or '').strip()
    category = (request.args.get('category') or '').strip()

    products = catalog.search_products(query)
    if category and category.lower() != 'all':
        products = [p for p in products if p.category == category]

    return _ok(
        products=[p.to_dict() for p in products],
        categories=[c.to_dict() for c in catalog.get_categories()]
    )


@terminal.route('/pos/cart', methods=['GET'])
@login_required
@role_required(*POS_ROLES)
def pos_cart():
    return _ok(cart=get_container().cart_service.get_cart())


@terminal.route('/pos/cart/add', methods=['POST'])
@login_required
@role_required(*POS_ROLES)
@verify_csrf
def pos_cart_add():
    container = get_container()
    data = _payload()
    product = container.catalog_service.get_product_or_raise(data.get('product_id'))
    quantity = _to_int(data.get('quantity'), 'quantity', default=1)

    if product.stock <= 0:
        raise ValidationError(f"{product.name} is out of stock")
    in_cart = container.cart_service.get_quantity(product.id)
    if in_cart + quantity > product.stock:
        raise ValidationError(
            f"Not enough stock for {product.name}. "
            f"In cart: {in_cart}, Available: {product.stock}"
        )

    container.cart_service.add_to_cart(product, quantity, data.get('discount'))
    return _ok(cart=container.cart_service.get_cart())


@terminal.route('/pos/cart/update', methods=['POST'])
@login_required
@role_required(*POS_ROLES)
@verify_csrf
def pos_cart_update():
    container = get_container()
    data = _payload()
    product_id = data.get('product_id')
    quantity = _to_int(data.get('quantity'), 'quantity')

    if quantity > 0:
        product = container.catalog_service.get_product_or_raise(product_id)
        if quantity > product.stock:
            raise ValidationError(
                f"Not enough stock for {product.name}. Available: {product.stock}"
            )

    container.cart_service.update_quantity(product_id, quantity)
    if 'discount' in data:
        container.cart_service.set_discount(product_id, data.get('discount'))
    return _ok(cart=container.cart_service.get_cart())


@terminal.route('/pos/cart/remove', methods=['POST'])
@login_required
@role_required(*POS_ROLES)
@verify_csrf
def pos_cart_remove():
    cart_service = get_container().cart_service
    cart_service.remove_from_cart(_payload().get('product_id'))
    return _ok(cart=cart_service.get_cart())


@terminal.route('/pos/cart/clear', methods=['POST'])
@login_required
@role_required(*POS_ROLES)
@verify_csrf
def pos_cart_clear():
    cart_service = get_container().cart_service
    cart_service.clear_cart()
    return _ok(cart=cart_service.get_cart())


@terminal.route('/pos/checkout', methods=['POST'])
@login_required
@role_required(*POS_ROLES)
@verify_csrf
def pos_checkout():
    container = get_container()
    data = _payload()

    transaction = container.checkout_service.checkout(
        container.cart_service.snapshot(),
        data.get('payment_method'),
        _current_user(),
        order_discount=data.get('discount') or 0,
        cash_received=data.get('cash_received')
    )
    container.cart_service.clear_cart()

    return _ok(transaction=transaction.to_dict())


# ═══════════════════════════════════════════════════════════════════════════════
# INVENTORY
# ═══════════════════════════════════════════════════════════════════════════════

@terminal.route('/inventory/products', methods=['GET', 'POST'])
@login_required
@role_required(*BACK_OFFICE_ROLES)
@verify_csrf
def inventory_products():
    container = get_container()
    catalog = container.catalog_service

    if request.method == 'POST':
        product = catalog.add_product(_payload(), actor=_current_actor())
        return _ok(product=product.to_dict()), 201

    query = (request.args.get('q') or '').strip()
    category = (request.args.get('category') or '').strip()
    threshold = container.settings_service.get_low_stock_alert()

    products = catalog.search_products(query)
    if category and category.lower() != 'all':
        products = [p for p in products if p.category == category]

    return _ok(
        products=[p.to_dict() for p in products],
        low_stock=[p.id for p in products if p.is_low_stock(threshold)]
    )


@terminal.route('/inventory/products/<product_id>', methods=['PUT', 'DELETE'])
@login_required
@role_required(*BACK_OFFICE_ROLES)
@verify_csrf
def inventory_product(product_id):
    catalog = get_container().catalog_service

    if request.method == 'DELETE':
        catalog.delete_product(product_id)
        return _ok()

    data = _payload()
    data.pop('csrf_token', None)
    product = catalog.update_product(product_id, data)
    return _ok(product=product.to_dict())


@terminal.route('/inventory/products/<product_id>/stock', methods=['POST'])
@login_required
@role_required(*BACK_OFFICE_ROLES)
@verify_csrf
def inventory_stock(product_id):
    catalog = get_container().catalog_service
    data = _payload()

    action = data.get('type')
    if action not in STOCK_ACTIONS:
        raise ValidationError(f"type must be one of: {', '.join(STOCK_ACTIONS)}")

    quantity = _to_int(data.get('quantity'), 'quantity')
    reason = (data.get('reason') or '').strip() or None
    expected = data.get('expected_stock')
    expected = None if expected in (None, '') else _to_int(expected, 'expected_stock')
    actor = _current_actor()

    if action == 'in':
        product = catalog.receive_stock(product_id, quantity, actor, reason, expected)
    elif action == 'out':
        product = catalog.remove_stock(product_id, quantity, actor, reason, expected)
    else:
        product = catalog.set_stock(product_id, quantity, actor, reason, expected)

    return _ok(product=product.to_dict())


@terminal.route('/inventory/logs', methods=['GET'])
@login_required
@role_required(*BACK_OFFICE_ROLES)
def inventory_logs():
    product_id = request.args.get('product_id') or None
    logs = get_container().inventory_log_service.query(product_id)
    return _ok(logs=[log.to_dict() for log in logs])


@terminal.route('/inventory/categories', methods=['GET', 'POST'])
@login_required
@role_required(*BACK_OFFICE_ROLES)
@verify_csrf
def inventory_categories():
    catalog = get_container().catalog_service

    if request.method == 'POST':
        data = _payload()
        category = catalog.add_category(data.get('name'), data.get('description'))
        return _ok(category=category.to_dict()), 201

    return _ok(categories=[c.to_dict() for c in catalog.get_categories()])


# ═══════════════════════════════════════════════════════════════════════════════
# TRANSACTIONS & ANALYTICS
# ═══════════════════════════════════════════════════════════════════════════════

@terminal.route('/transactions', methods=['GET'])
@login_required
@role_required(*ANY_ROLE)
def transactions():
    checkout = get_container().checkout_service
    query = (request.args.get('q') or '').strip()
    limit = request.args.get('limit')
    limit = None if not limit else _to_int(limit, 'limit')
    if limit is not None and limit < 0:
        raise ValidationError("limit cannot be negative")

    found = checkout.search_transactions(query)
    if limit:
        found = found[:limit]
    return _ok(transactions=[t.to_dict() for t in found])


@terminal.route('/transactions/export', methods=['GET'])
@login_required
@role_required(*ANY_ROLE)
def transactions_export():
    """CSV of the same list /transactions shows for the `q` search."""
    container = get_container()
    export = container.export_service
    query = (request.args.get('q') or '').strip()
    csv_text = export.transactions_csv(container.checkout_service.search_transactions(query))
    filename = export.transactions_filename(utcnow())
    return Response(
        csv_text,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


@terminal.route('/transactions/<transaction_id>', methods=['GET'])
@login_required
@role_required(*ANY_ROLE)
def transaction_detail(transaction_id):
    transaction = get_container().checkout_service.get_transaction_by_id(transaction_id)
    return _ok(transaction=transaction.to_dict())


@terminal.route('/analytics/report', methods=['GET'])
@login_required
@role_required(*BACK_OFFICE_ROLES)
def analytics_report():
    raw_date = (request.args.get('date') or '').strip()
    if raw_date:
        try:
            day = datetime.strptime(raw_date, '%Y-%m-%d').date()
        except ValueError:
            raise ValidationError("date must use the format YYYY-MM-DD")
    else:
        day = utcnow().date()
    return _ok(report=get_container().stats_service.sales_report(day))


# ═══════════════════════════════════════════════════════════════════════════════
# USERS
# ═══════════════════════════════════════════════════════════════════════════════

@terminal.route('/users', methods=['GET', 'POST'])
@login_required
@role_required(*ADMIN_ROLES)
@verify_csrf
def users():
    user_service = get_container().user_service

    if request.method == 'POST':
        data = _payload()
        user = user_service.create_user(
            data.get('username'), data.get('email'), data.get('role'), data.get('password')
        )
        return _ok(user=user.to_dict()), 201

    return _ok(users=[u.to_dict() for u in user_service.get_users()])


@terminal.route('/users/<user_id>', methods=['PUT', 'DELETE'])
@login_required
@role_required(*ADMIN_ROLES)
@verify_csrf
def user_detail(user_id):
    user_service = get_container().user_service

    if request.method == 'DELETE':
        if user_id == session.get('user_id'):
            raise ValidationError("You cannot delete your own account")
        user_service.delete_user(user_id)
        return _ok()

    data = _payload()
    user = user_service.update_user(
        user_id,
        username=data.get('username'),
        email=data.get('email'),
        role=data.get('role')
    )
    if user.id == session.get('user_id'):
        session['user'] = user.username
        session['role'] = user.role.value
    return _ok(user=user.to_dict())


@terminal.route('/users/<user_id>/password', methods=['POST'])
@login_required
@role_required(*ADMIN_ROLES)
@verify_csrf
def user_password(user_id):
    data = _payload()
    get_container().user_service.change_password(
        user_id, data.get('new_password'), data.get('confirm_password')
    )
    return _ok()


# ═══════════════════════════════════════════════════════════════════════════════
# SETTINGS
# ═══════════════════════════════════════════════════════════════════════════════

@terminal.route('/settings', methods=['GET', 'POST'])
@login_required
@role_required(*BACK_OFFICE_ROLES)
@verify_csrf
def settings():
    settings_service = get_container().settings_service

    if request.method == 'POST':
        data = _payload()
        data.pop('csrf_token', None)
        return _ok(settings=settings_service.update_settings(data).to_dict())

    return _ok(settings=settings_service.get_settings().to_dict())


@terminal.route('/settings/reset', methods=['POST'])
@login_required
@role_required(*BACK_OFFICE_ROLES)
@verify_csrf
def settings_reset():
    return _ok(settings=get_container().settings_service.reset_settings().to_dict())


# ═══════════════════════════════════════════════════════════════════════════════
# APPLICATION FACTORY
# ═══════════════════════════════════════════════════════════════════════════════

def configure_logging(app: Flask) -> None:
    """Module loggers (pos_terminal.*) go to stderr at LOG_LEVEL."""
    level = app.config.get('LOG_LEVEL', 'INFO')
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    )
    logging.getLogger('pos_terminal').setLevel(level)


def create_app(config_object=Config) -> Flask:
    """
    Builds the Flask app with its own terminal (container, demo data,
    profiling hooks and routes).

    Args:
        config_object: Config class or import path
    """
    app = Flask(__name__)
    app.config.from_object(config_object)
    warn_unsafe_defaults(app.config)
    configure_logging(app)

    container = AppContainer.from_config(app.config)
    if app.config.get('SEED_DEMO_DATA'):
        seed_demo_data(container)
    app.extensions['pos'] = container

    init_profiling(app)
    app.register_blueprint(terminal)

    @app.errorhandler(PosError)
    def handle_pos_error(error):
        if not isinstance(error, NotFoundError):
            logger.info("%s on %s %s: %s", type(error).__name__, request.method, request.path, error)
        return jsonify({'ok': False, 'error': str(error)}), error.status_code

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
        if request.is_secure:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    return app


if __name__ == '__main__':
    create_app().run(host='127.0.0.1', port=5000, debug=False)

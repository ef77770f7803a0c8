# ==============================================================================
# INTERNAL PROFILING
# ==============================================================================
# Measures route and function timings without affecting the operator.
# Writes human-readable logs under LOGS_DIR for later review.
#
# ENABLE/DISABLE: configure(enabled=...) or POS_ENABLE_PROFILING
# ==============================================================================

import logging
import os
import threading
import time
from collections import defaultdict
from datetime import datetime
from functools import wraps

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

ENABLE_PROFILING = os.environ.get('POS_ENABLE_PROFILING', '1') == '1'

# Thresholds in milliseconds
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

LOGS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs')

PERFORMANCE_LOG = 'performance.log'
SLOW_ROUTES_LOG = 'slow_routes.log'
SLOW_FUNCTIONS_LOG = 'slow_functions.log'

# Route → readable action name
ROUTE_NAMES = {
    'POST /login': 'Log in',
    'POST /logout': 'Log out',
    'GET /dashboard': 'View dashboard',

    'GET /pos/products': 'Browse products',
    'GET /pos/cart': 'View cart',
    'POST /pos/cart/add': 'Add to cart',
    'POST /pos/cart/update': 'Change cart quantity',
    'POST /pos/cart/remove': 'Remove from cart',
    'POST /pos/cart/clear': 'Clear cart',
    'POST /pos/checkout': 'Checkout',

    'GET /inventory/products': 'View inventory',
    'POST /inventory/products': 'Create product',
    'PUT /inventory/products/<product_id>': 'Edit product',
    'DELETE /inventory/products/<product_id>': 'Delete product',
    'POST /inventory/products/<product_id>/stock': 'Update stock',
    'GET /inventory/logs': 'View inventory log',

    'GET /transactions': 'View transactions',
    'GET /transactions/export': 'Export transactions CSV',
    'GET /analytics/report': 'View sales report',

    'GET /users': 'View users',
    'GET /settings': 'View settings',
    'POST /settings': 'Save settings',
}

_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()
_write_lock = threading.Lock()


def configure(enabled: bool = None, logs_dir: str = None) -> None:
    """
    Changes profiling settings at runtime (called by the app factory).

    Args:
        enabled: Turn profiling on/off
        logs_dir: Directory for the log files
    """
    global ENABLE_PROFILING, LOGS_DIR
    if enabled is not None:
        ENABLE_PROFILING = enabled
    if logs_dir:
        LOGS_DIR = logs_dir


# ═══════════════════════════════════════════════════════════════════════════
# LOG WRITING
# ═══════════════════════════════════════════════════════════════════════════

def _get_timestamp():
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _write_log(filename, content):
    """Appends to a log file (thread-safe). Write failures never reach the operator."""
    try:
        with _write_lock:
            os.makedirs(LOGS_DIR, exist_ok=True)
            with open(os.path.join(LOGS_DIR, filename), 'a', encoding='utf-8') as f:
                f.write(content)
    except OSError as e:
        logger.debug("Could not write %s: %s", filename, e)


def _get_route_name(method, path, rule=None):
    """
    Readable name for a route.
    Tries an exact match, then the Flask rule, then falls back to the raw path.
    """
    key = f"{method} {path}"
    if key in ROUTE_NAMES:
        return ROUTE_NAMES[key]

    if rule:
        rule_key = f"{method} {rule}"
        if rule_key in ROUTE_NAMES:
            return ROUTE_NAMES[rule_key]

    return f"{method} {path}"


# ═══════════════════════════════════════════════════════════════════════════
# 1. ROUTE PROFILING
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(method, path, rule, time_ms, user=None):
    """
    Records one request in performance.log

    Args:
        method: GET, POST, etc.
        path: Requested path (/pos/cart/add)
        rule: Flask rule (/inventory/products/<product_id>)
        time_ms: Elapsed milliseconds
        user: User who made the request (optional)
    """
    if not ENABLE_PROFILING:
        return

    log_entry = f"""
════════════════════════════════════════
[PERFORMANCE] {_get_timestamp()}
────────────────────────────────────────
Action: {_get_route_name(method, path, rule)}
User: {user or 'anonymous'}
Route: {method} {path}
Time: {time_ms:.0f} ms
"""
    _write_log(PERFORMANCE_LOG, log_entry)


def log_slow_route(method, path, rule, time_ms, user=None, level='WARNING'):
    """
    Records a slow request in slow_routes.log

    Args:
        level: 'WARNING' (>300ms) or 'CRITICAL' (>700ms)
    """
    if not ENABLE_PROFILING:
        return

    threshold = THRESHOLD_WARNING if level == 'WARNING' else THRESHOLD_CRITICAL
    severity = 'SLOW' if level == 'WARNING' else 'VERY SLOW'

    log_entry = f"""
[{level}] {_get_timestamp()}
────────────────────────────────────────
{severity} route: {_get_route_name(method, path, rule)}
User: {user or 'anonymous'}
Detail: {method} {path}
Time: {time_ms:.0f} ms (threshold: {threshold} ms)
────────────────────────────────────────
"""
    _write_log(SLOW_ROUTES_LOG, log_entry)


def init_profiling(app):
    """
    Registers before_request/after_request timing hooks on a Flask app.

    Usage:
        from pos_terminal.performance_logger import init_profiling
        init_profiling(app)
    """
    configure(
        enabled=app.config.get('ENABLE_PROFILING', ENABLE_PROFILING),
        logs_dir=app.config.get('LOGS_DIR')
    )

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request, session

        if not ENABLE_PROFILING or not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000
        method = request.method
        path = request.path
        rule = str(request.url_rule) if request.url_rule else path
        user = session.get('user')

        log_route_performance(method, path, rule, elapsed, user)

        if elapsed >= THRESHOLD_CRITICAL:
            log_slow_route(method, path, rule, elapsed, user, 'CRITICAL')
        elif elapsed >= THRESHOLD_WARNING:
            log_slow_route(method, path, rule, elapsed, user, 'WARNING')

        return response


# ═══════════════════════════════════════════════════════════════════════════
# 2. FUNCTION PROFILING
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorator that measures key functions.

    Usage:
        @profile_function
        def my_function():
            ...

        @profile_function(name="Checkout")
        def checkout():
            ...

    Tracks number of calls, average time and maximum time.
    """
    def decorator(fn):
        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not ENABLE_PROFILING:
                return fn(*args, **kwargs)

            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000

                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms

                if elapsed_ms >= THRESHOLD_WARNING:
                    _log_slow_function_call(func_name, elapsed_ms)

        return wrapper

    # Allow @profile_function without parentheses
    if func is not None:
        return decorator(func)
    return decorator


def _log_slow_function_call(func_name, time_ms):
    severity = 'CRITICAL' if time_ms >= THRESHOLD_CRITICAL else 'SLOW'

    log_entry = f"""
[{severity}] {_get_timestamp()}
Function: {func_name}
Time: {time_ms:.0f} ms
────────────────────────────────────────
"""
    _write_log(SLOW_FUNCTIONS_LOG, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 3. STATISTICS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Statistics of every profiled function.

    Returns:
        dict: {name: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def reset_stats():
    """Clears every statistic (useful for tests)."""
    with _stats_lock:
        _function_stats.clear()


__all__ = [
    'configure',
    'init_profiling',
    'profile_function',
    'get_function_stats',
    'reset_stats',
]

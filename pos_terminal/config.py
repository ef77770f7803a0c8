# ==============================================================================
# CONFIGURATION
# ==============================================================================
# Every tunable value of the terminal lives here and can be overridden with an
# environment variable. The Flask app loads one of these classes with
# app.config.from_object().
#
#   POS_SECRET_KEY        Session signing key (REQUIRED in production)
#   POS_PRODUCTION_MODE   "1" = no demo data, warnings for unsafe defaults
#   POS_TAX_RATE          Default tax rate in percent (10)
#   POS_LOW_STOCK_ALERT   Products below this stock count as "low" (10)
#   POS_ENABLE_PROFILING  "1" = write performance logs
#   POS_LOGS_DIR          Directory for performance logs
#   POS_LOG_LEVEL         Level of the pos_terminal.* loggers (INFO)
#   POS_SEED_DEMO_DATA    "1" = load demo catalog and users at startup
# ==============================================================================

import os
from datetime import timedelta


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


_DEFAULT_SECRET = "pos_terminal_dev_secret_key_change_in_production"


class Config:
    """Default configuration (development)."""

    PRODUCTION_MODE = _env_flag('POS_PRODUCTION_MODE', False)

    SECRET_KEY = os.environ.get('POS_SECRET_KEY') or _DEFAULT_SECRET

    # Session cookie
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = timedelta(hours=12)

    CSRF_ENABLED = True

    # Store defaults (editable later through SettingsService)
    DEFAULT_TAX_RATE = float(os.environ.get('POS_TAX_RATE', '10'))
    DEFAULT_LOW_STOCK_ALERT = int(os.environ.get('POS_LOW_STOCK_ALERT', '10'))
    DEFAULT_CURRENCY = 'USD'

    # Logging
    LOG_LEVEL = os.environ.get('POS_LOG_LEVEL', 'INFO').upper()

    # Profiling
    ENABLE_PROFILING = _env_flag('POS_ENABLE_PROFILING', True)
    LOGS_DIR = os.environ.get(
        'POS_LOGS_DIR',
        os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs')
    )

    SEED_DEMO_DATA = _env_flag('POS_SEED_DEMO_DATA', not PRODUCTION_MODE)


class TestConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    SECRET_KEY = 'pos_terminal_test_secret'
    CSRF_ENABLED = False
    ENABLE_PROFILING = False
    SEED_DEMO_DATA = True
    DEFAULT_TAX_RATE = 10.0
    DEFAULT_LOW_STOCK_ALERT = 10
    LOG_LEVEL = 'WARNING'


def warn_unsafe_defaults(config) -> None:
    """Print warnings for settings that must not reach production unchanged."""
    if config.get('PRODUCTION_MODE') and config.get('SECRET_KEY') == _DEFAULT_SECRET:
        print("[WARNING] POS_PRODUCTION_MODE is on but POS_SECRET_KEY is not set")
        print("[WARNING] Define the environment variable to secure sessions")

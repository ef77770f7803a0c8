# ==============================================================================
# SERVICES LAYER - Business logic
# ==============================================================================
# Services hold every business rule of the terminal.
# They receive their repositories and collaborators by constructor and never
# touch Flask; the routes only translate request -> service -> response.
#
# STRUCTURE:
# ├── pricing.py                → Subtotal, tax, total, change (shared)
# ├── inventory_log_service.py  → Append-only stock ledger
# ├── catalog_service.py        → Products, categories, stock changes
# ├── settings_service.py       → Store settings and tax rate
# ├── cart_service.py           → The terminal's cart
# ├── checkout_service.py       → Checkout and transaction history
# ├── user_service.py           → Operators and authentication
# ├── stats_service.py          → Dashboard and sales report
# └── export_service.py         → CSV export
# ==============================================================================

from . import pricing
from .inventory_log_service import InventoryLogService
from .catalog_service import CatalogService
from .settings_service import SettingsService
from .cart_service import CartService
from .checkout_service import CheckoutService
from .user_service import UserService
from .stats_service import StatsService
from .export_service import ExportService

__all__ = [
    'pricing',
    'InventoryLogService',
    'CatalogService',
    'SettingsService',
    'CartService',
    'CheckoutService',
    'UserService',
    'StatsService',
    'ExportService',
]

# ==============================================================================
# REPOSITORIES LAYER - Data access
# ==============================================================================
# This layer hides where data lives (process memory today).
# Services only use the public methods, so a database-backed implementation
# can replace these classes without touching the services.
#
# STRUCTURE:
# ├── base.py                      → BaseRepository, DictRepository, ListRepository
# ├── product_repository.py        → Products and categories
# ├── transaction_repository.py    → Sales history
# ├── inventory_log_repository.py  → Stock ledger
# ├── user_repository.py           → Operators
# └── settings_repository.py       → Store settings
# ==============================================================================

from .base import BaseRepository, DictRepository, ListRepository
from .product_repository import ProductRepository, CategoryRepository
from .transaction_repository import TransactionRepository
from .inventory_log_repository import InventoryLogRepository
from .user_repository import UserRepository
from .settings_repository import SettingsRepository

__all__ = [
    'BaseRepository',
    'DictRepository',
    'ListRepository',
    'ProductRepository',
    'CategoryRepository',
    'TransactionRepository',
    'InventoryLogRepository',
    'UserRepository',
    'SettingsRepository',
]

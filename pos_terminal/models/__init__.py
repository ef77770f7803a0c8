# ==============================================================================
# MODELS LAYER - Data structures of the terminal
# ==============================================================================
# Every domain entity is a dataclass:
#   - Type hints document the structure
#   - to_dict() gives the JSON view used by the routes
#   - Independent of the storage mechanism
# ==============================================================================

from .entities import (
    # Users
    User,
    Role,
    Actor,
    SYSTEM_ACTOR,

    # Catalog
    Product,
    Category,

    # Cart and sales
    CartItem,
    Transaction,
    TransactionStatus,
    PaymentMethod,

    # Inventory audit
    InventoryLog,
    InventoryLogType,

    # Settings
    StoreSettings,

    # Helpers
    to_decimal,
    to_int,
    utcnow,
)

__all__ = [
    'User',
    'Role',
    'Actor',
    'SYSTEM_ACTOR',
    'Product',
    'Category',
    'CartItem',
    'Transaction',
    'TransactionStatus',
    'PaymentMethod',
    'InventoryLog',
    'InventoryLogType',
    'StoreSettings',
    'to_decimal',
    'to_int',
    'utcnow',
]

# ==============================================================================
# DOMAIN ENTITIES - dataclass definitions
# ==============================================================================
# Each entity represents one business concept of the terminal.
# They are independent of the storage mechanism (in-memory today).
# Money is always Decimal; to_dict() converts it to float for JSON.
# ==============================================================================

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_decimal(value: Any, field_name: str = 'value') -> Decimal:
    """
    Converts user input (str, int, float, Decimal) to Decimal.

    Floats go through str() so 2.5 becomes Decimal('2.5') and not its
    binary expansion.

    Raises:
        ValueError: if the value is not a number
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{field_name} must be a number")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"{field_name} must be a number")
    if not result.is_finite():
        raise ValueError(f"{field_name} must be a number")
    return result


def to_int(value: Any, field_name: str = 'value') -> int:
    """
    Converts user input to a whole number. 2.5 and "2.5" are rejected
    instead of being truncated; 3.0 is accepted.

    Raises:
        ValueError: if the value is not a whole number
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ValueError(f"{field_name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValueError(f"{field_name} must be an integer")
    if number != value:
        raise ValueError(f"{field_name} must be an integer")
    return number


def _money(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# ==============================================================================
# ENUMERATIONS
# ==============================================================================

class Role(str, Enum):
    """User roles. Flat set: no role implies another."""
    ADMIN = "admin"
    MANAGER = "manager"
    CASHIER = "cashier"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    DIGITAL = "digital"


class TransactionStatus(str, Enum):
    """
    Transaction states.
    Only COMPLETED is produced today; REFUNDED and CANCELLED are reserved.
    """
    COMPLETED = "completed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class InventoryLogType(str, Enum):
    STOCK_IN = "stock_in"
    STOCK_OUT = "stock_out"
    ADJUSTMENT = "adjustment"
    SALE = "sale"


# ==============================================================================
# CATALOG ENTITIES
# ==============================================================================

@dataclass
class Product:
    """
    A sellable product.

    Attributes:
        id: Opaque identifier
        name: Display name
        sku: Stock keeping unit (unique in the catalog)
        price: Unit sale price
        cost: Unit acquisition cost
        stock: Units on hand (never negative)
        category: Category name (matched by name, not id)
        barcode: Optional barcode
        description: Optional free text
    """
    id: str
    name: str
    sku: str
    price: Decimal
    cost: Decimal
    stock: int
    category: str
    barcode: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def margin(self) -> Decimal:
        """Unit profit (price - cost)."""
        return self.price - self.cost

    def is_low_stock(self, threshold: int) -> bool:
        return self.stock < threshold

    def copy(self) -> 'Product':
        """Independent copy (every field is an immutable value)."""
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'sku': self.sku,
            'price': _money(self.price),
            'cost': _money(self.cost),
            'stock': self.stock,
            'category': self.category,
            'barcode': self.barcode,
            'description': self.description,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


@dataclass
class Category:
    id: str
    name: str
    description: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'created_at': _iso(self.created_at),
        }


# ==============================================================================
# CART ENTITIES
# ==============================================================================

@dataclass
class CartItem:
    """
    One line of the cart.

    Attributes:
        product: Product being sold
        quantity: Units (>= 1)
        discount: Optional line discount in percent (0-100)
    """
    product: Product
    quantity: int
    discount: Optional[Decimal] = None

    @property
    def line_total(self) -> Decimal:
        """price * quantity * (1 - discount/100); no discount means 0."""
        gross = self.product.price * self.quantity
        discount = self.discount or Decimal('0')
        return gross - gross * discount / Decimal('100')

    def snapshot(self) -> 'CartItem':
        """Copy of this line with its own copy of the product."""
        return CartItem(
            product=self.product.copy(),
            quantity=self.quantity,
            discount=self.discount
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product': self.product.to_dict(),
            'quantity': self.quantity,
            'discount': _money(self.discount),
            'line_total': _money(self.line_total),
        }


# ==============================================================================
# SALES ENTITIES
# ==============================================================================

@dataclass(frozen=True)
class Transaction:
    """
    Immutable record of one completed sale.

    The line items hold copies of the products taken when the transaction
    was created, so later catalog edits or deletions do not change receipts.
    """
    id: str
    items: Tuple[CartItem, ...]
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    payment_method: PaymentMethod
    cashier_id: str
    cashier_name: str
    created_at: datetime
    status: TransactionStatus = TransactionStatus.COMPLETED
    cash_received: Optional[Decimal] = None
    change_due: Optional[Decimal] = None

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'items': [item.to_dict() for item in self.items],
            'total_items': self.total_items,
            'subtotal': _money(self.subtotal),
            'tax': _money(self.tax),
            'discount': _money(self.discount),
            'total': _money(self.total),
            'payment_method': self.payment_method.value,
            'cashier_id': self.cashier_id,
            'cashier_name': self.cashier_name,
            'created_at': _iso(self.created_at),
            'status': self.status.value,
            'cash_received': _money(self.cash_received),
            'change_due': _money(self.change_due),
        }


# ==============================================================================
# INVENTORY AUDIT ENTITIES
# ==============================================================================

@dataclass(frozen=True)
class InventoryLog:
    """
    One entry of the append-only stock ledger.

    Attributes:
        product_id: Product whose stock changed
        product_name: Name at the moment of the change
        type: stock_in, stock_out, adjustment or sale
        quantity: Size of the change (never negative)
        previous_stock: Stock before the change
        new_stock: Stock after the change
        reason: Optional free text
        user_id / user_name: Who made the change
    """
    id: str
    product_id: str
    product_name: str
    type: InventoryLogType
    quantity: int
    previous_stock: int
    new_stock: int
    user_id: str
    user_name: str
    reason: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'product_id': self.product_id,
            'product_name': self.product_name,
            'type': self.type.value,
            'quantity': self.quantity,
            'previous_stock': self.previous_stock,
            'new_stock': self.new_stock,
            'reason': self.reason,
            'user_id': self.user_id,
            'user_name': self.user_name,
            'created_at': _iso(self.created_at),
        }


# ==============================================================================
# USER ENTITIES
# ==============================================================================

@dataclass
class User:
    """
    A terminal operator.

    Attributes:
        username: Unique login name
        password_hash: Werkzeug hash (never the plain password)
        role: Single role, checked against explicit per-route lists
    """
    id: str
    username: str
    email: str
    role: Role
    password_hash: str
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Public view; the password hash is never exposed."""
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'role': self.role.value,
            'created_at': _iso(self.created_at),
        }


@dataclass(frozen=True)
class Actor:
    """Who performed a stock change (attribution for log entries)."""
    id: str
    name: str

    @classmethod
    def from_user(cls, user: User) -> 'Actor':
        return cls(id=user.id, name=user.username)


SYSTEM_ACTOR = Actor(id='system', name='System')


# ==============================================================================
# SETTINGS
# ==============================================================================

@dataclass
class StoreSettings:
    """Store-wide settings edited from the Settings page."""
    store_name: str = 'My POS Store'
    store_address: str = '123 Main St, City, State 12345'
    store_phone: str = '(555) 123-4567'
    store_email: str = 'contact@mystore.com'
    tax_rate: Decimal = Decimal('10')
    currency: str = 'USD'
    receipt_header: str = 'Thank you for shopping with us!'
    receipt_footer: str = 'Please come again!'
    auto_print_receipt: bool = True
    low_stock_alert: int = 10
    require_login: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'store_name': self.store_name,
            'store_address': self.store_address,
            'store_phone': self.store_phone,
            'store_email': self.store_email,
            'tax_rate': _money(self.tax_rate),
            'currency': self.currency,
            'receipt_header': self.receipt_header,
            'receipt_footer': self.receipt_footer,
            'auto_print_receipt': self.auto_print_receipt,
            'low_stock_alert': self.low_stock_alert,
            'require_login': self.require_login,
        }

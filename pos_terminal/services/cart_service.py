# ==============================================================================
# CART SERVICE
# ==============================================================================
# Centralizes the business logic of the shopping cart.
# The terminal has one cart, held in memory by this service. Stock is not
# checked here; checkout validates it against the catalog.
# ==============================================================================

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pos_terminal.errors import ValidationError
from pos_terminal.models import CartItem, Product, to_decimal, to_int
from pos_terminal.services import pricing
from pos_terminal.services.settings_service import SettingsService


def _parse_quantity(quantity: Any) -> int:
    try:
        return to_int(quantity, 'Quantity')
    except ValueError as e:
        raise ValidationError(str(e))


def _parse_discount(discount: Any) -> Optional[Decimal]:
    if discount is None:
        return None
    try:
        value = to_decimal(discount, 'discount')
    except ValueError as e:
        raise ValidationError(str(e))
    if value < 0 or value > 100:
        raise ValidationError("Discount must be between 0 and 100")
    return value


class CartService:
    """
    Service for the shopping cart.

    Responsibilities:
    - Add/remove lines, change quantities and line discounts
    - Compute subtotal, tax and total with the current tax rate
    - Hand a snapshot of the lines to checkout
    """

    def __init__(self, settings_service: SettingsService):
        """
        Args:
            settings_service: Source of the tax rate
        """
        self.settings_service = settings_service
        self._items: List[CartItem] = []

    def _get_cart(self) -> List[CartItem]:
        return self._items

    def _save_cart(self, cart: List[CartItem]) -> None:
        self._items = cart

    def _find(self, product_id: str) -> Optional[CartItem]:
        for item in self._get_cart():
            if item.product.id == product_id:
                return item
        return None

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_to_cart(
        self,
        product: Product,
        quantity: int = 1,
        discount: Any = None
    ) -> CartItem:
        """
        Adds units of a product. A product already in the cart gets its
        quantity increased instead of a second line.

        Args:
            product: Product to sell
            quantity: Units to add (>= 1)
            discount: Optional line discount in percent

        Returns:
            The affected line
        """
        quantity = _parse_quantity(quantity)
        if quantity < 1:
            raise ValidationError("Quantity must be greater than 0")
        discount = _parse_discount(discount)

        cart = self._get_cart()
        existing = self._find(product.id)
        if existing:
            existing.quantity += quantity
            if discount is not None:
                existing.discount = discount
            line = existing
        else:
            line = CartItem(product=product, quantity=quantity, discount=discount)
            cart.append(line)

        self._save_cart(cart)
        return line

    def remove_from_cart(self, product_id: str) -> None:
        """Removes the line of a product (no-op when absent)."""
        self._save_cart([i for i in self._get_cart() if i.product.id != product_id])

    def update_quantity(self, product_id: str, quantity: int) -> None:
        """
        Sets the quantity of a line; zero or less removes it.
        Unknown products are ignored.
        """
        quantity = _parse_quantity(quantity)
        if quantity <= 0:
            self.remove_from_cart(product_id)
            return

        item = self._find(product_id)
        if item:
            item.quantity = quantity

    def set_discount(self, product_id: str, discount: Any) -> None:
        """Sets (or clears with None) the discount of a line."""
        discount = _parse_discount(discount)
        item = self._find(product_id)
        if item:
            item.discount = discount

    def clear_cart(self) -> None:
        self._save_cart([])

    # =========================================================================
    # READS
    # =========================================================================

    def get_items(self) -> List[CartItem]:
        """Copy of the lines; changing it does not change the cart."""
        return [item.snapshot() for item in self._get_cart()]

    snapshot = get_items

    def get_total_items(self) -> int:
        return sum(item.quantity for item in self._get_cart())

    def get_subtotal(self) -> Decimal:
        return pricing.calculate_subtotal(self._get_cart())

    def get_tax(self) -> Decimal:
        return pricing.calculate_tax(self.get_subtotal(), self.settings_service.get_tax_rate())

    def get_total(self) -> Decimal:
        return pricing.calculate_total(self.get_subtotal(), self.settings_service.get_tax_rate())

    def is_empty(self) -> bool:
        return not self._get_cart()

    def get_quantity(self, product_id: str) -> int:
        item = self._find(product_id)
        return item.quantity if item else 0

    def get_cart(self) -> Dict[str, Any]:
        """
        Cart with computed totals (JSON view), rounded the way the
        receipt will be.

        Returns:
            Dict with items, total_items, subtotal, tax, total
        """
        subtotal, tax, total = pricing.receipt_totals(
            self.get_subtotal(), self.settings_service.get_tax_rate()
        )
        return {
            'items': [item.to_dict() for item in self._get_cart()],
            'total_items': self.get_total_items(),
            'items_count': len(self._get_cart()),
            'subtotal': float(subtotal),
            'tax': float(tax),
            'total': float(total),
        }

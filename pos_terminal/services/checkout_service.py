# ==============================================================================
# CHECKOUT SERVICE
# ==============================================================================
# Turns a cart into a recorded transaction and reconciles stock.
#
# FLOW:
# 1. Validate input (cart, payment method, order discount, cash)
# 2. Compute totals with the shared pricing helpers
# 3. Validate the projected stock of every product
# 4. Record the immutable Transaction
# 5. Apply every stock decrement and its `sale` log entry
#
# Steps 3-5 run under the catalog lock: either the sale is recorded with
# all its stock changes or nothing changes.
# ==============================================================================

import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from pos_terminal.errors import (
    EmptyCartError,
    InsufficientCashError,
    InsufficientStockError,
    TransactionNotFoundError,
    ValidationError,
)
from pos_terminal.models import (
    Actor,
    CartItem,
    InventoryLogType,
    PaymentMethod,
    Transaction,
    TransactionStatus,
    User,
    to_decimal,
    utcnow,
)
from pos_terminal.performance_logger import profile_function
from pos_terminal.repositories import TransactionRepository
from pos_terminal.services import pricing
from pos_terminal.services.catalog_service import CatalogService
from pos_terminal.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


def _parse_payment_method(value: Any) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        valid = ', '.join(m.value for m in PaymentMethod)
        raise ValidationError(f"Invalid payment method '{value}'. Use one of: {valid}")


def _parse_amount(value: Any, field_name: str) -> Decimal:
    try:
        return to_decimal(value, field_name)
    except ValueError as e:
        raise ValidationError(str(e))


class CheckoutService:
    """
    Service for sales.

    Responsibilities:
    - Checkout (validation, totals, stock reconciliation)
    - Transaction history queries
    """

    def __init__(
        self,
        transaction_repo: TransactionRepository,
        catalog_service: CatalogService,
        settings_service: SettingsService
    ):
        """
        Args:
            transaction_repo: Sales history
            catalog_service: Stock owner; applies the sale decrements
            settings_service: Source of the tax rate
        """
        self.transaction_repo = transaction_repo
        self.catalog_service = catalog_service
        self.settings_service = settings_service

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    @profile_function(name="Checkout")
    def checkout(
        self,
        items: Sequence[CartItem],
        payment_method: Any,
        cashier: User,
        order_discount: Any = 0,
        cash_received: Any = None
    ) -> Transaction:
        """
        Records a sale and decrements stock.

        Args:
            items: Cart lines (a snapshot; the caller clears its cart after)
            payment_method: cash, card or digital
            cashier: Logged-in user making the sale
            order_discount: Amount taken off the taxed total
            cash_received: Required for cash payments

        Returns:
            The recorded Transaction

        Raises:
            EmptyCartError: no items
            ValidationError: bad payment method or discount
            InsufficientCashError: cash missing or below the total
            InsufficientStockError / ProductNotFoundError: a line cannot be
                fulfilled; nothing is recorded
        """
        if not items:
            raise EmptyCartError()

        method = _parse_payment_method(payment_method)

        discount = _parse_amount(order_discount or 0, 'discount')
        if discount < 0:
            raise ValidationError("Discount cannot be negative")

        subtotal, tax, total = pricing.receipt_totals(
            pricing.calculate_subtotal(items),
            self.settings_service.get_tax_rate(),
            discount
        )
        if total < 0:
            raise ValidationError("Discount cannot exceed the order total")

        received = None
        change_due = None
        if method is PaymentMethod.CASH:
            if cash_received in (None, ''):
                raise InsufficientCashError()
            received = _parse_amount(cash_received, 'cash_received')
            if received < total:
                raise InsufficientCashError()
            change_due = pricing.quantize_money(pricing.compute_change_due(total, received))

        quantities = self._aggregate_quantities(items)
        actor = Actor.from_user(cashier)

        with self.catalog_service.locked():
            self._validate_stock(quantities)

            transaction = Transaction(
                id=self.transaction_repo.next_id(),
                items=tuple(item.snapshot() for item in items),
                subtotal=subtotal,
                tax=tax,
                discount=pricing.quantize_money(discount),
                total=total,
                payment_method=method,
                cashier_id=cashier.id,
                cashier_name=cashier.username,
                created_at=utcnow(),
                status=TransactionStatus.COMPLETED,
                cash_received=received,
                change_due=change_due
            )

            self.catalog_service.apply_stock_changes(
                OrderedDict((pid, -qty) for pid, qty in quantities.items()),
                InventoryLogType.SALE,
                f"Sale - Transaction {transaction.id}",
                actor
            )
            self.transaction_repo.prepend(transaction)

        logger.info(
            "Checkout %s by %s: %d items, total %s (%s)",
            transaction.id, cashier.username, transaction.total_items,
            transaction.total, method.value
        )
        return transaction

    @staticmethod
    def _aggregate_quantities(items: Sequence[CartItem]) -> Dict[str, int]:
        quantities: Dict[str, int] = OrderedDict()
        for item in items:
            if item.quantity < 1:
                raise ValidationError("Quantity must be greater than 0")
            pid = item.product.id
            quantities[pid] = quantities.get(pid, 0) + item.quantity
        return quantities

    def _validate_stock(self, quantities: Dict[str, int]) -> None:
        for product_id, quantity in quantities.items():
            product = self.catalog_service.get_product_or_raise(product_id)
            if quantity > product.stock:
                raise InsufficientStockError(product.name, quantity, product.stock)

    @staticmethod
    def compute_change_due(total: Any, cash_received: Any) -> Decimal:
        return pricing.compute_change_due(
            _parse_amount(total, 'total'),
            None if cash_received is None else _parse_amount(cash_received, 'cash_received')
        )

    # =========================================================================
    # HISTORY
    # =========================================================================

    def get_transactions(self, limit: Optional[int] = None) -> List[Transaction]:
        """Most recent first."""
        return self.transaction_repo.get_recent(limit)

    def get_transaction_by_id(self, transaction_id: str) -> Transaction:
        transaction = self.transaction_repo.get_by_id(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        return transaction

    def search_transactions(self, query: str) -> List[Transaction]:
        """
        Case-insensitive match on id, cashier name or payment method.
        """
        if not query:
            return self.get_transactions()
        lower_query = query.lower()
        return self.transaction_repo.find_all(
            lambda t: (
                lower_query in t.id.lower()
                or lower_query in t.cashier_name.lower()
                or lower_query in t.payment_method.value
            )
        )

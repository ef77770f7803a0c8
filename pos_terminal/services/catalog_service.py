# ==============================================================================
# CATALOG SERVICE
# ==============================================================================
# Centralizes the business logic for products, categories and stock.
# This is the only writer of Product.stock: every change goes through
# adjust_stock() or apply_stock_changes() and leaves an inventory log entry.
# ==============================================================================

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple
from contextlib import contextmanager

from pos_terminal.errors import (
    DuplicateSkuError,
    InsufficientStockError,
    ProductNotFoundError,
    StockConflictError,
    ValidationError,
)
from pos_terminal.models import (
    SYSTEM_ACTOR,
    Actor,
    Category,
    InventoryLogType,
    Product,
    to_decimal,
    to_int,
    utcnow,
)
from pos_terminal.performance_logger import profile_function
from pos_terminal.repositories import CategoryRepository, ProductRepository
from pos_terminal.services.inventory_log_service import InventoryLogService

logger = logging.getLogger(__name__)

REQUIRED_PRODUCT_FIELDS = ('name', 'sku', 'price', 'cost', 'stock', 'category')
EDITABLE_PRODUCT_FIELDS = frozenset(
    ['name', 'sku', 'price', 'cost', 'category', 'barcode', 'description']
)


def _parse_stock(value: Any, field_name: str = 'stock') -> int:
    try:
        return to_int(value, field_name)
    except ValueError as e:
        raise ValidationError(str(e))


def _parse_money(value: Any, field_name: str) -> Decimal:
    try:
        amount = to_decimal(value, field_name)
    except ValueError as e:
        raise ValidationError(str(e))
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return amount


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class CatalogService:
    """
    Service for the product catalog.

    Responsibilities:
    - Product CRUD with SKU uniqueness
    - Category management
    - Stock changes (single product and all-or-nothing batches)
    - Catalog queries (search, category, low stock)
    """

    def __init__(
        self,
        product_repo: ProductRepository,
        category_repo: CategoryRepository,
        inventory_log: InventoryLogService
    ):
        """
        Args:
            product_repo: Product repository
            category_repo: Category repository
            inventory_log: Audit log written on every stock change
        """
        self.product_repo = product_repo
        self.category_repo = category_repo
        self.inventory_log = inventory_log

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Holds the catalog lock (used by checkout across validate and apply)."""
        with self.product_repo.locked():
            yield

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_products(self) -> List[Product]:
        return self.product_repo.get_all()

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        return self.product_repo.get_by_id(product_id)

    def get_product_or_raise(self, product_id: str) -> Product:
        product = self.product_repo.get_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def get_products_by_category(self, category: str) -> List[Product]:
        return self.product_repo.get_by_category(category)

    def search_products(self, query: str) -> List[Product]:
        """
        Case-insensitive search over name and SKU, substring over barcode.
        An empty query returns the whole catalog.
        """
        if not query:
            return self.get_products()
        return self.product_repo.search(query)

    def get_low_stock_products(self, threshold: int) -> List[Product]:
        """Products whose stock is strictly below the threshold."""
        return self.product_repo.get_low_stock(threshold)

    # =========================================================================
    # PRODUCT OPERATIONS
    # =========================================================================

    @profile_function(name="Add product")
    def add_product(self, data: Mapping[str, Any], actor: Actor = SYSTEM_ACTOR) -> Product:
        """
        Creates a product and logs its initial stock.

        Args:
            data: name, sku, price, cost, stock, category and optionally
                barcode, description
            actor: Who creates the product

        Returns:
            The new Product

        Raises:
            ValidationError: missing or invalid fields
            DuplicateSkuError: SKU already used by another product
        """
        missing = [f for f in REQUIRED_PRODUCT_FIELDS if data.get(f) in (None, '')]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        name = _clean_text(data['name'])
        sku = _clean_text(data['sku'])
        category = _clean_text(data['category'])
        if not name or not sku or not category:
            raise ValidationError("Name, SKU and category cannot be blank")

        price = _parse_money(data['price'], 'price')
        cost = _parse_money(data['cost'], 'cost')
        stock = _parse_stock(data['stock'])
        if stock < 0:
            raise ValidationError("stock cannot be negative")

        with self.product_repo.locked():
            if self.product_repo.get_by_sku(sku) is not None:
                raise DuplicateSkuError(sku)

            now = utcnow()
            product = Product(
                id=self.product_repo.next_id(),
                name=name,
                sku=sku,
                price=price,
                cost=cost,
                stock=stock,
                category=category,
                barcode=_clean_text(data.get('barcode')),
                description=_clean_text(data.get('description')),
                created_at=now,
                updated_at=now
            )
            self.product_repo.add(product.id, product)

            self.inventory_log.append(
                product_id=product.id,
                product_name=product.name,
                log_type=InventoryLogType.STOCK_IN,
                quantity=stock,
                previous_stock=0,
                new_stock=stock,
                actor=actor,
                reason="New product added"
            )

        logger.info("Product added: %s (%s), stock %d", product.name, product.sku, stock)
        return product

    def update_product(self, product_id: str, fields: Mapping[str, Any]) -> Product:
        """
        Edits product details. Stock is not editable here.

        Raises:
            ProductNotFoundError: unknown id
            ValidationError: stock passed, unknown field or invalid value
            DuplicateSkuError: new SKU already in use
        """
        if 'stock' in fields:
            raise ValidationError("Stock cannot be edited directly; use a stock adjustment")

        unknown = set(fields) - EDITABLE_PRODUCT_FIELDS
        if unknown:
            raise ValidationError(f"Unknown product fields: {', '.join(sorted(unknown))}")

        changes: Dict[str, Any] = {}
        for key in ('name', 'sku', 'category'):
            if key in fields:
                value = _clean_text(fields[key])
                if not value:
                    raise ValidationError(f"{key} cannot be blank")
                changes[key] = value
        for key in ('price', 'cost'):
            if key in fields:
                changes[key] = _parse_money(fields[key], key)
        for key in ('barcode', 'description'):
            if key in fields:
                changes[key] = _clean_text(fields[key])

        with self.product_repo.locked():
            product = self.get_product_or_raise(product_id)

            new_sku = changes.get('sku')
            if new_sku is not None:
                owner = self.product_repo.get_by_sku(new_sku)
                if owner is not None and owner.id != product_id:
                    raise DuplicateSkuError(new_sku)

            updated = replace(product, updated_at=utcnow(), **changes)
            self.product_repo.update(product_id, updated)

        logger.info("Product updated: %s", updated.name)
        return updated

    def delete_product(self, product_id: str) -> Product:
        """
        Removes a product. Transactions and log entries that mention it
        are kept as they are.

        Raises:
            ProductNotFoundError: unknown id
        """
        removed = self.product_repo.delete(product_id)
        if removed is None:
            raise ProductNotFoundError(product_id)
        logger.info("Product deleted: %s (%s)", removed.name, removed.sku)
        return removed

    # =========================================================================
    # STOCK OPERATIONS
    # =========================================================================

    def adjust_stock(
        self,
        product_id: str,
        delta: int,
        log_type: InventoryLogType,
        reason: Optional[str],
        actor: Actor,
        expected_stock: Optional[int] = None
    ) -> Product:
        """
        Changes the stock of one product and writes the paired log entry.

        Args:
            product_id: Product to change
            delta: Signed change (+ receive, - remove)
            log_type: Log entry type
            reason: Free text for the log
            actor: Who made the change
            expected_stock: If given, the change only applies when the
                current stock still equals it

        Returns:
            The updated Product

        Raises:
            ProductNotFoundError: unknown id
            StockConflictError: current stock differs from expected_stock
            InsufficientStockError: the result would be negative
        """
        delta = _parse_stock(delta, 'quantity')

        with self.product_repo.locked():
            product = self.get_product_or_raise(product_id)
            previous = product.stock

            if expected_stock is not None and previous != expected_stock:
                raise StockConflictError(product_id, expected_stock, previous)

            new_stock = previous + delta
            if new_stock < 0:
                raise InsufficientStockError(product.name, -delta, previous)

            updated = replace(product, stock=new_stock, updated_at=utcnow())
            self.product_repo.update(product_id, updated)

            self.inventory_log.append(
                product_id=product_id,
                product_name=product.name,
                log_type=log_type,
                quantity=abs(delta),
                previous_stock=previous,
                new_stock=new_stock,
                actor=actor,
                reason=reason
            )

        logger.info(
            "Stock %s for %s: %d -> %d",
            InventoryLogType(log_type).value, product.name, previous, new_stock
        )
        return updated

    def receive_stock(
        self,
        product_id: str,
        quantity: int,
        actor: Actor,
        reason: Optional[str] = None,
        expected_stock: Optional[int] = None
    ) -> Product:
        """Stock in: adds units."""
        quantity = self._positive_quantity(quantity)
        return self.adjust_stock(
            product_id, quantity, InventoryLogType.STOCK_IN,
            reason or "Stock received", actor, expected_stock
        )

    def remove_stock(
        self,
        product_id: str,
        quantity: int,
        actor: Actor,
        reason: Optional[str] = None,
        expected_stock: Optional[int] = None
    ) -> Product:
        """Stock out: removes units (damage, loss, returns to supplier)."""
        quantity = self._positive_quantity(quantity)
        return self.adjust_stock(
            product_id, -quantity, InventoryLogType.STOCK_OUT,
            reason or "Stock removed", actor, expected_stock
        )

    def set_stock(
        self,
        product_id: str,
        new_stock: int,
        actor: Actor,
        reason: Optional[str] = None,
        expected_stock: Optional[int] = None
    ) -> Product:
        """
        Absolute adjustment (physical count). Logged as `adjustment` with
        quantity = |new - previous|.
        """
        new_stock = _parse_stock(new_stock)
        if new_stock < 0:
            raise ValidationError("stock cannot be negative")

        with self.product_repo.locked():
            product = self.get_product_or_raise(product_id)
            return self.adjust_stock(
                product_id, new_stock - product.stock, InventoryLogType.ADJUSTMENT,
                reason or "Stock count adjustment", actor, expected_stock
            )

    @profile_function(name="Apply stock changes")
    def apply_stock_changes(
        self,
        changes: Mapping[str, int],
        log_type: InventoryLogType,
        reason: Optional[str],
        actor: Actor
    ) -> List[Product]:
        """
        Applies several stock changes as one unit.

        Every projected stock is validated before anything is written, so
        either all products change (each with one log entry) or none do.

        Args:
            changes: {product_id: signed delta}
            log_type: Type of every log entry
            reason: Reason of every log entry
            actor: Who made the change

        Returns:
            The updated products, in the order of `changes`

        Raises:
            ProductNotFoundError: a product no longer exists
            InsufficientStockError: a result would be negative
        """
        with self.product_repo.locked():
            planned: List[Tuple[Product, int]] = []

            # Phase 1: validate
            for product_id, delta in changes.items():
                product = self.get_product_or_raise(product_id)
                new_stock = product.stock + delta
                if new_stock < 0:
                    raise InsufficientStockError(product.name, -delta, product.stock)
                planned.append((product, new_stock))

            # Phase 2: apply
            now = utcnow()
            updated_products = []
            for product, new_stock in planned:
                updated = replace(product, stock=new_stock, updated_at=now)
                self.product_repo.update(product.id, updated)
                self.inventory_log.append(
                    product_id=product.id,
                    product_name=product.name,
                    log_type=log_type,
                    quantity=abs(new_stock - product.stock),
                    previous_stock=product.stock,
                    new_stock=new_stock,
                    actor=actor,
                    reason=reason
                )
                updated_products.append(updated)

        return updated_products

    @staticmethod
    def _positive_quantity(quantity: Any) -> int:
        quantity = _parse_stock(quantity, 'quantity')
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")
        return quantity

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def get_categories(self) -> List[Category]:
        return self.category_repo.get_all()

    def add_category(self, name: str, description: Optional[str] = None) -> Category:
        """
        Creates a category. Names are unique, case-insensitive.

        Raises:
            ValidationError: blank or duplicate name
        """
        name = _clean_text(name)
        if not name:
            raise ValidationError("Category name is required")

        with self.category_repo.locked():
            if self.category_repo.get_by_name(name) is not None:
                raise ValidationError(f"Category '{name}' already exists")
            category = Category(
                id=self.category_repo.next_id(),
                name=name,
                description=_clean_text(description),
                created_at=utcnow()
            )
            self.category_repo.add(category.id, category)

        logger.info("Category added: %s", name)
        return category

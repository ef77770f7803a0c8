# ==============================================================================
# DEPENDENCY CONTAINER - Service wiring
# ==============================================================================
# One place that builds the repositories and services of a terminal and
# hands each service its collaborators. It makes it easy to:
#   - Build an isolated terminal per Flask app (and per test)
#   - Replace a repository without touching the services
#
# Usage:
#     container = AppContainer(tax_rate=10, low_stock_alert=10)
#     container.cart_service.add_to_cart(product, 2)
#     container.checkout_service.checkout(...)
#
# Every property is built on first use and reused afterwards.
# ==============================================================================

from decimal import Decimal
from typing import Optional

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIES - Storage layer (process memory)
# ═══════════════════════════════════════════════════════════════════════════════
from pos_terminal.repositories import (
    CategoryRepository,
    InventoryLogRepository,
    ProductRepository,
    SettingsRepository,
    TransactionRepository,
    UserRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICES - Business logic layer
# ═══════════════════════════════════════════════════════════════════════════════
from pos_terminal.services import (
    CartService,
    CatalogService,
    CheckoutService,
    ExportService,
    InventoryLogService,
    SettingsService,
    StatsService,
    UserService,
)
from pos_terminal.models import StoreSettings, to_decimal


class AppContainer:
    """
    Dependency container of one terminal.

    Not a singleton: create_app() builds one per application and stores it
    in app.extensions['pos'].

    Args:
        tax_rate: Default tax rate in percent
        low_stock_alert: Default low-stock threshold
        currency: Default currency code
    """

    def __init__(
        self,
        tax_rate=Decimal('10'),
        low_stock_alert: int = 10,
        currency: str = 'USD'
    ):
        self._default_settings = StoreSettings(
            tax_rate=to_decimal(tax_rate, 'tax_rate'),
            low_stock_alert=int(low_stock_alert),
            currency=currency
        )

        # Repositories (lazy)
        self._product_repo: Optional[ProductRepository] = None
        self._category_repo: Optional[CategoryRepository] = None
        self._transaction_repo: Optional[TransactionRepository] = None
        self._inventory_log_repo: Optional[InventoryLogRepository] = None
        self._user_repo: Optional[UserRepository] = None
        self._settings_repo: Optional[SettingsRepository] = None

        # Services (lazy)
        self._inventory_log_service: Optional[InventoryLogService] = None
        self._catalog_service: Optional[CatalogService] = None
        self._settings_service: Optional[SettingsService] = None
        self._cart_service: Optional[CartService] = None
        self._checkout_service: Optional[CheckoutService] = None
        self._user_service: Optional[UserService] = None
        self._stats_service: Optional[StatsService] = None
        self._export_service: Optional[ExportService] = None

    @classmethod
    def from_config(cls, config) -> 'AppContainer':
        """Builds a container from a Flask config mapping."""
        return cls(
            tax_rate=config.get('DEFAULT_TAX_RATE', 10),
            low_stock_alert=config.get('DEFAULT_LOW_STOCK_ALERT', 10),
            currency=config.get('DEFAULT_CURRENCY', 'USD')
        )

    # =========================================================================
    # REPOSITORIES
    # =========================================================================

    @property
    def product_repo(self) -> ProductRepository:
        if self._product_repo is None:
            self._product_repo = ProductRepository()
        return self._product_repo

    @property
    def category_repo(self) -> CategoryRepository:
        if self._category_repo is None:
            self._category_repo = CategoryRepository()
        return self._category_repo

    @property
    def transaction_repo(self) -> TransactionRepository:
        if self._transaction_repo is None:
            self._transaction_repo = TransactionRepository()
        return self._transaction_repo

    @property
    def inventory_log_repo(self) -> InventoryLogRepository:
        if self._inventory_log_repo is None:
            self._inventory_log_repo = InventoryLogRepository()
        return self._inventory_log_repo

    @property
    def user_repo(self) -> UserRepository:
        if self._user_repo is None:
            self._user_repo = UserRepository()
        return self._user_repo

    @property
    def settings_repo(self) -> SettingsRepository:
        """Settings repository, seeded with the config defaults."""
        if self._settings_repo is None:
            self._settings_repo = SettingsRepository(self._default_settings)
        return self._settings_repo

    # =========================================================================
    # SERVICES
    # =========================================================================

    @property
    def inventory_log_service(self) -> InventoryLogService:
        if self._inventory_log_service is None:
            self._inventory_log_service = InventoryLogService(self.inventory_log_repo)
        return self._inventory_log_service

    @property
    def catalog_service(self) -> CatalogService:
        """Catalog service (writes stock logs through inventory_log_service)."""
        if self._catalog_service is None:
            self._catalog_service = CatalogService(
                self.product_repo,
                self.category_repo,
                self.inventory_log_service
            )
        return self._catalog_service

    @property
    def settings_service(self) -> SettingsService:
        if self._settings_service is None:
            self._settings_service = SettingsService(self.settings_repo)
        return self._settings_service

    @property
    def cart_service(self) -> CartService:
        if self._cart_service is None:
            self._cart_service = CartService(self.settings_service)
        return self._cart_service

    @property
    def checkout_service(self) -> CheckoutService:
        """Checkout service (depends on catalog and settings)."""
        if self._checkout_service is None:
            self._checkout_service = CheckoutService(
                self.transaction_repo,
                self.catalog_service,
                self.settings_service
            )
        return self._checkout_service

    @property
    def user_service(self) -> UserService:
        if self._user_service is None:
            self._user_service = UserService(self.user_repo)
        return self._user_service

    @property
    def stats_service(self) -> StatsService:
        if self._stats_service is None:
            self._stats_service = StatsService(
                self.checkout_service,
                self.catalog_service,
                self.settings_service
            )
        return self._stats_service

    @property
    def export_service(self) -> ExportService:
        if self._export_service is None:
            self._export_service = ExportService()
        return self._export_service

    # =========================================================================
    # UTILITIES
    # =========================================================================

    def reset(self) -> None:
        """
        Clears every repository and the cart (used by tests and demo
        reseeding).
        """
        for repo in (
            self.product_repo,
            self.category_repo,
            self.transaction_repo,
            self.inventory_log_repo,
            self.user_repo,
            self.settings_repo,
        ):
            repo.clear()
        self.cart_service.clear_cart()


__all__ = ['AppContainer']

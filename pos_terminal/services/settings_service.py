# ==============================================================================
# SETTINGS SERVICE
# ==============================================================================
# Store-wide settings: identity, receipt texts, tax rate and stock alert.
# The tax rate is read on every price calculation, so a change applies to
# the very next cart total.
# ==============================================================================

import logging
from dataclasses import fields, replace
from decimal import Decimal
from typing import Any, Mapping

from pos_terminal.errors import ValidationError
from pos_terminal.models import StoreSettings, to_decimal
from pos_terminal.repositories import SettingsRepository
from pos_terminal.services.pricing import percent_to_rate

logger = logging.getLogger(__name__)

SETTING_KEYS = frozenset(f.name for f in fields(StoreSettings))
TEXT_KEYS = frozenset([
    'store_name', 'store_address', 'store_phone', 'store_email',
    'currency', 'receipt_header', 'receipt_footer',
])
BOOL_KEYS = frozenset(['auto_print_receipt', 'require_login'])


class SettingsService:
    """Service for store settings."""

    def __init__(self, settings_repo: SettingsRepository):
        self.settings_repo = settings_repo

    def get_settings(self) -> StoreSettings:
        return self.settings_repo.load()

    def get_tax_rate(self) -> Decimal:
        """
        Current tax rate as a fraction.

        Returns:
            Decimal('0.10') for a 10% setting
        """
        return percent_to_rate(self.settings_repo.load().tax_rate)

    def get_low_stock_alert(self) -> int:
        return self.settings_repo.load().low_stock_alert

    def update_settings(self, values: Mapping[str, Any]) -> StoreSettings:
        """
        Validates and saves a partial update.

        Args:
            values: Subset of StoreSettings fields

        Returns:
            The saved settings

        Raises:
            ValidationError: unknown key or invalid value
        """
        unknown = set(values) - SETTING_KEYS
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        changes = {}
        for key, value in values.items():
            if key == 'tax_rate':
                try:
                    rate = to_decimal(value, 'tax_rate')
                except ValueError as e:
                    raise ValidationError(str(e))
                if rate < 0 or rate > 100:
                    raise ValidationError("tax_rate must be between 0 and 100")
                changes[key] = rate
            elif key == 'low_stock_alert':
                if isinstance(value, bool):
                    raise ValidationError("low_stock_alert must be an integer")
                try:
                    alert = int(value)
                except (TypeError, ValueError):
                    raise ValidationError("low_stock_alert must be an integer")
                if alert < 0:
                    raise ValidationError("low_stock_alert cannot be negative")
                changes[key] = alert
            elif key in BOOL_KEYS:
                if not isinstance(value, bool):
                    raise ValidationError(f"{key} must be true or false")
                changes[key] = value
            elif key in TEXT_KEYS:
                changes[key] = '' if value is None else str(value).strip()

        with self.settings_repo.locked():
            settings = replace(self.settings_repo.load(), **changes)
            self.settings_repo.save(settings)

        logger.info("Settings updated: %s", ', '.join(sorted(changes)))
        return settings

    def reset_settings(self) -> StoreSettings:
        settings = self.settings_repo.reset()
        logger.info("Settings reset to defaults")
        return settings

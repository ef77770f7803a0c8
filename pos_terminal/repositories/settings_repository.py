# ==============================================================================
# SETTINGS REPOSITORY
# ==============================================================================
# Holds the single StoreSettings record of the terminal.
# ==============================================================================

from dataclasses import replace

from pos_terminal.models import StoreSettings
from pos_terminal.repositories.base import BaseRepository


class SettingsRepository(BaseRepository):
    """
    Repository for store settings.

    Args:
        defaults: Settings restored by reset() (built from the app config)
    """

    def __init__(self, defaults: StoreSettings = None):
        self._defaults = defaults or StoreSettings()
        super().__init__()

    def _empty_data(self) -> StoreSettings:
        return replace(self._defaults)

    def load(self) -> StoreSettings:
        """Returns a copy; callers change settings through save()."""
        with self._lock:
            return replace(self._data)

    def save(self, settings: StoreSettings) -> None:
        with self._lock:
            self._data = replace(settings)

    def reset(self) -> StoreSettings:
        """
        Restores the defaults.

        Returns:
            The restored settings
        """
        with self._lock:
            self._data = self._empty_data()
            return replace(self._data)

    @property
    def defaults(self) -> StoreSettings:
        return replace(self._defaults)

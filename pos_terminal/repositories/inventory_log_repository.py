# ==============================================================================
# INVENTORY LOG REPOSITORY
# ==============================================================================
# Append-only stock ledger, most recent first.
# Entries are never updated or deleted.
# ==============================================================================

import uuid
from typing import List

from pos_terminal.models import InventoryLog, InventoryLogType
from pos_terminal.repositories.base import ListRepository


class InventoryLogRepository(ListRepository[InventoryLog]):
    """
    Repository for inventory log entries.

    The per-product audit trail is rebuilt by filtering on product_id.
    """

    def next_id(self) -> str:
        return uuid.uuid4().hex

    def get_by_product(self, product_id: str) -> List[InventoryLog]:
        return self.find_all(lambda log: log.product_id == product_id)

    def get_by_type(self, log_type: InventoryLogType) -> List[InventoryLog]:
        return self.find_all(lambda log: log.type == log_type)

# ==============================================================================
# INVENTORY LOG SERVICE
# ==============================================================================
# Append-only ledger of stock changes.
# Entries are created here and never changed afterwards. The catalog writes
# one entry for every stock mutation; nobody else appends.
# ==============================================================================

import logging
from typing import List, Optional

from pos_terminal.models import Actor, InventoryLog, InventoryLogType, utcnow
from pos_terminal.repositories import InventoryLogRepository

logger = logging.getLogger(__name__)


class InventoryLogService:
    """
    Service for the inventory audit trail.

    Responsibilities:
    - Build and store log entries
    - Answer queries by product
    """

    def __init__(self, log_repo: InventoryLogRepository):
        self.log_repo = log_repo

    def append(
        self,
        product_id: str,
        product_name: str,
        log_type: InventoryLogType,
        quantity: int,
        previous_stock: int,
        new_stock: int,
        actor: Actor,
        reason: Optional[str] = None
    ) -> InventoryLog:
        """
        Stores a new entry at the head of the log.

        Args:
            product_id: Product whose stock changed
            product_name: Name at the time of the change
            log_type: stock_in, stock_out, adjustment or sale
            quantity: Magnitude of the change
            previous_stock: Stock before
            new_stock: Stock after
            actor: Who made the change
            reason: Optional free text

        Returns:
            The created entry
        """
        entry = InventoryLog(
            id=self.log_repo.next_id(),
            product_id=product_id,
            product_name=product_name,
            type=InventoryLogType(log_type),
            quantity=abs(int(quantity)),
            previous_stock=previous_stock,
            new_stock=new_stock,
            user_id=actor.id,
            user_name=actor.name,
            reason=reason,
            created_at=utcnow()
        )
        self.log_repo.prepend(entry)
        logger.debug(
            "Inventory log %s: %s %s (%d -> %d)",
            entry.type.value, product_name, entry.quantity, previous_stock, new_stock
        )
        return entry

    def query(self, product_id: Optional[str] = None) -> List[InventoryLog]:
        """
        All entries, or only those of one product. Newest first.
        """
        if product_id is None:
            return self.log_repo.get_all()
        return self.log_repo.get_by_product(product_id)

    def query_by_type(self, log_type: InventoryLogType) -> List[InventoryLog]:
        return self.log_repo.get_by_type(InventoryLogType(log_type))

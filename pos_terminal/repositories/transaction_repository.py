# ==============================================================================
# TRANSACTION REPOSITORY
# ==============================================================================
# Transaction history, most recent first.
# Transactions are immutable: this repository only prepends and reads.
# ==============================================================================

from typing import List, Optional

from pos_terminal.models import Transaction
from pos_terminal.repositories.base import ListRepository


class TransactionRepository(ListRepository[Transaction]):
    """
    Repository for completed sales.

    Ids are sequential receipt numbers: T000001, T000002, ...
    """

    def __init__(self):
        super().__init__()
        self._sequence = 0

    def next_id(self) -> str:
        """
        Reserves the next receipt number.

        Returns:
            Id in the format "T000001"
        """
        with self._lock:
            self._sequence += 1
            return f"T{self._sequence:06d}"

    def get_by_id(self, transaction_id: str) -> Optional[Transaction]:
        return self.find_first(lambda t: t.id == transaction_id)

    def get_recent(self, limit: Optional[int] = None) -> List[Transaction]:
        transactions = self.get_all()
        return transactions[:limit] if limit else transactions

    def clear(self) -> None:
        with self._lock:
            super().clear()
            self._sequence = 0

# ==============================================================================
# EXPORT SERVICE
# ==============================================================================
# CSV export of the transaction history (Transactions page).
# ==============================================================================

import csv
import io
from typing import Iterable

from pos_terminal.models import Transaction

CSV_HEADER = [
    'Transaction ID',
    'Date',
    'Cashier',
    'Items',
    'Subtotal',
    'Tax',
    'Total',
    'Payment Method',
    'Status',
]

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ExportService:
    """Builds downloadable exports."""

    def transactions_csv(self, transactions: Iterable[Transaction]) -> str:
        """
        One row per transaction; Items is the number of units sold.

        Returns:
            CSV text with a header row
        """
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(CSV_HEADER)

        for t in transactions:
            writer.writerow([
                t.id,
                t.created_at.strftime(DATE_FORMAT),
                t.cashier_name,
                t.total_items,
                f"{t.subtotal:.2f}",
                f"{t.tax:.2f}",
                f"{t.total:.2f}",
                t.payment_method.value,
                t.status.value,
            ])

        return output.getvalue()

    @staticmethod
    def transactions_filename(now) -> str:
        return f"transactions-{now.strftime('%Y-%m-%d')}.csv"

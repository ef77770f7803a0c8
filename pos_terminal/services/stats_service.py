# ==============================================================================
# STATS SERVICE
# ==============================================================================
# Dashboard figures and the daily sales report.
#
# MAIN RULE: only COMPLETED transactions count.
# - REFUNDED ❌
# - CANCELLED ❌
# Days are calendar days in UTC.
# ==============================================================================

from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from pos_terminal.models import Transaction, TransactionStatus, utcnow
from pos_terminal.services.catalog_service import CatalogService
from pos_terminal.services.checkout_service import CheckoutService
from pos_terminal.services.pricing import quantize_money
from pos_terminal.services.settings_service import SettingsService

TOP_PRODUCTS_LIMIT = 5
DAILY_SALES_DAYS = 7


class StatsService:
    """
    Service for sales statistics.

    Responsibilities:
    - Dashboard totals, today's figures and the last 7 days
    - Best-selling products
    - Daily sales report
    """

    VALID_STATUS = TransactionStatus.COMPLETED

    def __init__(
        self,
        checkout_service: CheckoutService,
        catalog_service: CatalogService,
        settings_service: SettingsService
    ):
        self.checkout_service = checkout_service
        self.catalog_service = catalog_service
        self.settings_service = settings_service

    def _completed(self) -> List[Transaction]:
        return [
            t for t in self.checkout_service.get_transactions()
            if t.status == self.VALID_STATUS
        ]

    @staticmethod
    def _day_of(transaction: Transaction) -> date:
        return transaction.created_at.astimezone(timezone.utc).date()

    @staticmethod
    def _sum_totals(transactions: Iterable[Transaction]) -> Decimal:
        return sum((t.total for t in transactions), Decimal('0'))

    def top_products(
        self,
        transactions: Iterable[Transaction],
        limit: int = TOP_PRODUCTS_LIMIT
    ) -> List[Dict[str, Any]]:
        """
        Best sellers by quantity.

        Returns:
            [{product_id, name, quantity, revenue}], highest quantity first
        """
        totals: Dict[str, Dict[str, Any]] = {}
        for transaction in transactions:
            for item in transaction.items:
                entry = totals.setdefault(item.product.id, {
                    'product_id': item.product.id,
                    'name': item.product.name,
                    'quantity': 0,
                    'revenue': Decimal('0'),
                })
                entry['quantity'] += item.quantity
                entry['revenue'] += item.line_total

        ranked = sorted(totals.values(), key=lambda e: e['quantity'], reverse=True)
        return [
            dict(entry, revenue=float(quantize_money(entry['revenue'])))
            for entry in ranked[:limit]
        ]

    def dashboard_stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Figures for the dashboard.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            Dict with totals, today's figures, daily_sales (oldest first)
            and top_products
        """
        now = now or utcnow()
        today = now.astimezone(timezone.utc).date()
        completed = self._completed()

        by_day: Dict[date, Decimal] = defaultdict(lambda: Decimal('0'))
        for transaction in completed:
            by_day[self._day_of(transaction)] += transaction.total

        today_transactions = [t for t in completed if self._day_of(t) == today]
        threshold = self.settings_service.get_low_stock_alert()

        daily_sales = []
        for offset in range(DAILY_SALES_DAYS - 1, -1, -1):
            day = today - timedelta(days=offset)
            daily_sales.append({
                'date': day.isoformat(),
                'sales': float(by_day[day]),
            })

        return {
            'total_sales': float(self._sum_totals(completed)),
            'total_transactions': len(completed),
            'total_products': len(self.catalog_service.get_products()),
            'low_stock_products': len(self.catalog_service.get_low_stock_products(threshold)),
            'today_sales': float(self._sum_totals(today_transactions)),
            'today_transactions': len(today_transactions),
            'daily_sales': daily_sales,
            'top_products': self.top_products(completed),
        }

    def sales_report(self, day: date) -> Dict[str, Any]:
        """
        Report for one calendar day.

        Returns:
            Dict with date, total_sales, total_transactions,
            average_order_value, top_products
        """
        transactions = [t for t in self._completed() if self._day_of(t) == day]
        total = self._sum_totals(transactions)
        average = total / len(transactions) if transactions else Decimal('0')

        return {
            'date': day.isoformat(),
            'total_sales': float(total),
            'total_transactions': len(transactions),
            'average_order_value': float(quantize_money(average)),
            'top_products': self.top_products(transactions),
        }

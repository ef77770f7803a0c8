# ==============================================================================
# PRICING
# ==============================================================================
# Money arithmetic shared by the cart and the checkout recorder.
# All values are Decimal. Line math is exact; receipt_totals rounds a
# receipt to cents so that subtotal + tax - discount == total.
# ==============================================================================

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple

from pos_terminal.models import CartItem

CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def quantize_money(value: Decimal) -> Decimal:
    """Rounds to cents, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_to_rate(percent: Decimal) -> Decimal:
    """10 -> 0.10"""
    return percent / HUNDRED


def calculate_subtotal(items: Iterable[CartItem]) -> Decimal:
    """
    Sum of the line totals.

    Each line is price * quantity * (1 - discount/100).
    """
    return sum((item.line_total for item in items), Decimal('0'))


def calculate_tax(subtotal: Decimal, tax_rate: Decimal) -> Decimal:
    """
    Args:
        subtotal: Pre-tax amount
        tax_rate: Fraction (0.10 for 10%)
    """
    return subtotal * tax_rate


def calculate_total(subtotal: Decimal, tax_rate: Decimal) -> Decimal:
    return subtotal + calculate_tax(subtotal, tax_rate)


def receipt_totals(
    subtotal: Decimal,
    tax_rate: Decimal,
    discount: Decimal = Decimal('0')
) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Cent-rounded (subtotal, tax, total) of a receipt.

    Subtotal and tax are rounded first and the total is built from the
    rounded parts, so the printed figures always add up.
    """
    rounded_subtotal = quantize_money(subtotal)
    rounded_tax = quantize_money(calculate_tax(subtotal, tax_rate))
    return rounded_subtotal, rounded_tax, rounded_subtotal + rounded_tax - quantize_money(discount)


def compute_change_due(total: Decimal, cash_received: Optional[Decimal]) -> Decimal:
    """
    Change to hand back for a cash payment.

    Returns:
        cash_received - total, or 0 when nothing was received
    """
    if cash_received is None:
        return Decimal('0')
    return cash_received - total

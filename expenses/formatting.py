"""Display formatting for amounts, percentages and dates."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from expenses.config import CURRENCY_SYMBOL, DATE_LABEL_FORMAT

Number = Union[Decimal, int, float]

CENT = Decimal("0.01")
TENTH = Decimal("0.1")


def _quantize(value: Number, step: Decimal) -> Decimal:
    return Decimal(str(value)).quantize(step, rounding=ROUND_HALF_UP)


def format_amount(amount: Number, symbol: str = CURRENCY_SYMBOL) -> str:
    """Format an amount with the currency symbol and two decimals.

    Example:
        >>> format_amount(Decimal("1234.5"))
        '£1,234.50'
    """
    return f"{symbol}{_quantize(amount, CENT):,.2f}"


def format_percentage(value: Number) -> str:
    return f"{_quantize(value, TENTH):.1f}%"


def date_label(ts: datetime) -> str:
    """Label used in expense rows, e.g. ``'03 Mar 2025, 14:05'``."""
    return ts.strftime(DATE_LABEL_FORMAT)


def transactions_label(count: int) -> str:
    return f"{count} transaction" if count == 1 else f"{count} transactions"

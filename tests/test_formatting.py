from datetime import datetime
from decimal import Decimal

from expenses.formatting import date_label, format_amount, format_percentage, transactions_label


def test_format_amount():
    assert format_amount(Decimal("3.5")) == "£3.50"
    assert format_amount(Decimal("1234.567")) == "£1,234.57"
    assert format_amount(0) == "£0.00"
    assert format_amount(Decimal("2.005"), symbol="$") == "$2.01"


def test_format_percentage():
    assert format_percentage(Decimal("59.32203389")) == "59.3%"
    assert format_percentage(0) == "0.0%"
    assert format_percentage(12.25) == "12.3%"


def test_date_label():
    assert date_label(datetime(2025, 3, 3, 14, 5)) == "03 Mar 2025, 14:05"


def test_transactions_label():
    assert transactions_label(1) == "1 transaction"
    assert transactions_label(3) == "3 transactions"


def test_format_amount_handles_largest_accepted_totals():
    largest = Decimal("999999999999.99")
    assert format_amount(largest) == "£999,999,999,999.99"
    # ten thousand maximum-size expenses still fit the decimal context
    assert format_amount(largest * 10000) == "£9,999,999,999,999,900.00"

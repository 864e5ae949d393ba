from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

DEFAULT_CATEGORY = "General"


@dataclass(frozen=True)
class Identity:
    uid: str
    email: str
    display_name: Optional[str] = None


@dataclass(frozen=True)
class NewExpense:
    owner: str        # uid of the signed-in user
    title: str
    category: str
    amount: Decimal


@dataclass(frozen=True)
class Expense:
    id: str           # assigned by the store
    owner: str
    title: str
    category: str
    amount: Decimal   # always > 0 when entered through the form
    created_at: datetime


@dataclass(frozen=True)
class CategorySummary:
    category: str
    total_amount: Decimal
    transaction_count: int


@dataclass(frozen=True)
class PeriodTotals:
    today: Decimal
    week: Decimal
    month: Decimal


class TimeRange(Enum):
    TODAY = "Today"
    LAST_7_DAYS = "Last 7 days"
    THIS_MONTH = "This month"
    THIS_YEAR = "This year"
    ALL_TIME = "All time"


# What a screen is showing right now. Exactly one holds at any time.
class ViewStatus(Enum):
    LOADING = "loading"
    EMPTY = "empty"
    READY = "ready"
    FAILED = "failed"

from itertools import islice
from typing import Iterable, Iterator

from expenses.aggregator import sort_newest_first
from expenses.config import RECENT_LIMIT
from expenses.domain import Expense


def recent_expenses(records: Iterable[Expense], n: int = RECENT_LIMIT) -> Iterator[Expense]:
    """Newest ``n`` expenses, newest first."""
    return islice(sort_newest_first(records), max(0, n))

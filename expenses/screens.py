"""Controllers behind the home, history and analytics screens.

A screen is built with the store and the signed-in identity (``None`` when
nobody is signed in). ``activate`` opens a live query and ``deactivate``
closes it; used as a context manager the query is closed on every exit path.

Each snapshot replaces ``records`` and every derived value is rebuilt from it.
A store error keeps the last records on screen and flips ``status`` to
``FAILED`` until the next good snapshot arrives.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

from expenses.aggregator import (
    ZERO,
    compute_period_totals,
    search_filter,
    sort_newest_first,
)
from expenses.config import RECENT_LIMIT, SIGN_IN_PROMPT
from expenses.domain import (
    CategorySummary,
    Expense,
    Identity,
    PeriodTotals,
    TimeRange,
    ViewStatus,
)
from expenses.errors import StoreError
from expenses.lazy import recent_expenses
from expenses.services import ReportService
from expenses.store import RecordStore, Subscription

logger = logging.getLogger(__name__)


class Screen:
    empty_message = "No expenses yet."

    def __init__(
        self,
        store: RecordStore,
        identity: Optional[Identity],
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.identity = identity
        self.clock = clock
        self.records: Tuple[Expense, ...] = ()
        self.error: Optional[str] = None
        self._loaded = False
        self._subscription: Optional[Subscription] = None

    @property
    def status(self) -> ViewStatus:
        if self.error is not None:
            return ViewStatus.FAILED
        if not self._loaded:
            return ViewStatus.LOADING
        if not self.visible():
            return ViewStatus.EMPTY
        return ViewStatus.READY

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def visible(self) -> Tuple:
        """Items the screen lists; an empty result means the EMPTY state."""
        return self.records

    def activate(self) -> None:
        if self.active:
            return
        if self.identity is None:
            self.error = SIGN_IN_PROMPT
            return
        self._subscription = self.store.subscribe(
            self.identity.uid, self._on_snapshot, self._on_error
        )

    def deactivate(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def __enter__(self):
        self.activate()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.deactivate()

    def _on_snapshot(self, snapshot: Tuple[Expense, ...]) -> None:
        self.records = sort_newest_first(snapshot)
        self.error = None
        self._loaded = True
        self.recompute()

    def _on_error(self, error: StoreError) -> None:
        logger.warning("%s lost its live query: %s", type(self).__name__, error.message)
        self.error = error.message

    def recompute(self) -> None:
        pass


class HomeScreen(Screen):
    empty_message = "No expenses yet. Add your first one with +."

    def __init__(self, store, identity, clock=datetime.now, recent_limit: int = RECENT_LIMIT):
        super().__init__(store, identity, clock)
        self.recent_limit = recent_limit
        self.recent: Tuple[Expense, ...] = ()
        self.totals = PeriodTotals(today=ZERO, week=ZERO, month=ZERO)

    def recompute(self) -> None:
        self.recent = tuple(recent_expenses(self.records, self.recent_limit))
        self.totals = compute_period_totals(self.records, self.clock())


class HistoryScreen(Screen):
    empty_message = "No expenses found in your history."

    def __init__(self, store, identity, clock=datetime.now):
        super().__init__(store, identity, clock)
        self.query = ""
        self.results: Tuple[Expense, ...] = ()

    def set_query(self, query: str) -> None:
        self.query = query
        self.recompute()

    def visible(self) -> Tuple[Expense, ...]:
        return self.results

    def recompute(self) -> None:
        self.results = search_filter(self.records, self.query)


class AnalyticsScreen(Screen):
    empty_message = "No expenses in this period."

    def __init__(
        self,
        store,
        identity,
        clock=datetime.now,
        time_range: TimeRange = TimeRange.ALL_TIME,
        reports: Optional[ReportService] = None,
    ):
        super().__init__(store, identity, clock)
        self.time_range = time_range
        self.reports = reports or ReportService()
        self.total_spent: Decimal = ZERO
        self.month_total: Decimal = ZERO
        self.summaries: Tuple[CategorySummary, ...] = ()
        self.percentages: Dict[str, Decimal] = {}

    def set_time_range(self, time_range: TimeRange) -> None:
        self.time_range = time_range
        self.recompute()

    def visible(self) -> Tuple[CategorySummary, ...]:
        return self.summaries

    def rows(self) -> List[Tuple[CategorySummary, Decimal]]:
        return [(s, self.percentages.get(s.category, ZERO)) for s in self.summaries]

    def recompute(self) -> None:
        result = self.reports.category_report(self.records, self.time_range, self.clock())["result"]
        self.total_spent = result["total_spent"]
        self.month_total = result["month_total"]
        self.summaries = result["summaries"]
        self.percentages = result["percentages"]

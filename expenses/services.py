import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from expenses.aggregator import (
    filter_by_range,
    percentage_of_total,
    sum_amount,
    summarize_by_category,
)
from expenses.domain import Expense, Identity, NewExpense, TimeRange
from expenses.errors import StoreError, Unauthenticated, ValidationError
from expenses.functional import Either, Left, Right
from expenses.store import RecordStore
from expenses.validation import validate_expense

logger = logging.getLogger(__name__)

FORM = "form"


class ExpenseService:
    """Saves expenses for an explicitly supplied identity.

    Failures come back as ``Left({field: message})``. Field checks run first
    and nothing reaches the store unless they all pass; store and sign-in
    problems are reported under the ``"form"`` key.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def add_expense(
        self, identity: Optional[Identity], title: str, category: str, amount_text: str
    ) -> Either[Dict[str, str], str]:
        if identity is None:
            return Left({FORM: Unauthenticated.message})
        return validate_expense(identity.uid, title, category, amount_text).bind(self._create)

    def save(
        self, identity: Optional[Identity], title: str, category: str, amount_text: str
    ) -> str:
        """Like ``add_expense`` but raises ``Unauthenticated``, ``ValidationError`` or ``StoreError``."""
        if identity is None:
            raise Unauthenticated()
        result = validate_expense(identity.uid, title, category, amount_text)
        if result.is_left():
            raise ValidationError(result.get_error())
        return self.store.create(result.get_or_else(None))

    def _create(self, new: NewExpense) -> Either[Dict[str, str], str]:
        try:
            return Right(self.store.create(new))
        except StoreError as e:
            logger.warning("Failed to save expense for %s: %s", new.owner, e.message)
            return Left({FORM: e.message or "Failed to save expense."})


def range_step(records, time_range, now, acc) -> Dict[str, Any]:
    return {"records": filter_by_range(records, time_range, now)}


def total_step(records, time_range, now, acc) -> Dict[str, Any]:
    return {"total_spent": sum_amount(acc.get("records", records))}


def month_step(records, time_range, now, acc) -> Dict[str, Any]:
    return {"month_total": sum_amount(filter_by_range(records, TimeRange.THIS_MONTH, now))}


def summary_step(records, time_range, now, acc) -> Dict[str, Any]:
    summaries = summarize_by_category(acc.get("records", records))
    grand_total = acc.get("total_spent", sum_amount(acc.get("records", records)))
    return {
        "summaries": summaries,
        "percentages": {
            s.category: percentage_of_total(s.total_amount, grand_total) for s in summaries
        },
    }


DEFAULT_AGGREGATORS = (range_step, total_step, month_step, summary_step)


class ReportService:
    """Runs injected aggregators over a record list and keeps every step.

    aggregators: functions taking (records, time_range, now, acc) -> dict; each
    output is merged into ``acc`` before the next one runs.
    """

    def __init__(self, aggregators: Sequence[Callable[..., Dict[str, Any]]] = DEFAULT_AGGREGATORS):
        self.aggregators = aggregators

    def category_report(
        self, records: Iterable[Expense], time_range: TimeRange, now: datetime
    ) -> Dict[str, Any]:
        records = tuple(records)
        report = {"range": time_range, "steps": [], "result": {}}
        acc: Dict[str, Any] = {}
        for agg in self.aggregators:
            out = agg(records, time_range, now, acc)
            report["steps"].append({"aggregator": getattr(agg, "__name__", str(agg)), "output": out})
            acc.update(out)
        report["result"] = acc
        return report

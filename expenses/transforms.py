import json
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

import pandas as pd

from expenses.aggregator import percentage_of_total
from expenses.domain import DEFAULT_CATEGORY, CategorySummary, Expense

logger = logging.getLogger(__name__)


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        logger.warning("Ignoring unreadable amount %r", value)
        return Decimal("0")
    if not amount.is_finite():
        logger.warning("Ignoring non-finite amount %r", value)
        return Decimal("0")
    return amount


def _to_datetime(value: Any, now: datetime) -> datetime:
    if value is None:
        return now
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def record_from_document(
    doc_id: str, doc: Mapping[str, Any], now: datetime
) -> Optional[Expense]:
    """Map a stored document onto an ``Expense``.

    Documents without a title are skipped. A missing category falls back to
    ``"General"``, a missing amount to zero and a missing timestamp to ``now``.
    """
    title = doc.get("title")
    if title is None:
        logger.debug("Skipping document %s without a title", doc_id)
        return None
    return Expense(
        id=doc_id,
        owner=doc.get("owner", ""),
        title=title,
        category=doc.get("category") or DEFAULT_CATEGORY,
        amount=_to_decimal(doc.get("amount")),
        created_at=_to_datetime(doc.get("created_at"), now),
    )


def records_from_snapshot(
    documents: Iterable[Tuple[str, Mapping[str, Any]]], now: datetime
) -> Tuple[Expense, ...]:
    """Materialise a full snapshot of ``(id, document)`` pairs."""
    records = (record_from_document(doc_id, doc, now) for doc_id, doc in documents)
    return tuple(r for r in records if r is not None)


def record_to_document(e: Expense) -> dict:
    return {
        "owner": e.owner,
        "title": e.title,
        "category": e.category,
        "amount": str(e.amount),
        "created_at": e.created_at.isoformat(),
    }


def load_seed(path: Union[str, Path], now: Optional[datetime] = None) -> Tuple[Expense, ...]:
    """Load demo expenses from a JSON file of the form ``{"expenses": [...]}``.

    Each entry carries an ``id`` plus the document fields.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    now = now or datetime.now()
    documents = ((d.get("id", str(i)), d) for i, d in enumerate(data.get("expenses", [])))
    records = records_from_snapshot(documents, now)
    logger.info("Loaded %d seed expenses from %s", len(records), path)
    return records


def expenses_frame(records: Iterable[Expense]) -> pd.DataFrame:
    """Tabular view of the records for charts and CSV export."""
    rows = [
        {
            "id": e.id,
            "date": e.created_at,
            "title": e.title,
            "category": e.category,
            "amount": float(e.amount),
        }
        for e in records
    ]
    df = pd.DataFrame(rows, columns=["id", "date", "title", "category", "amount"])
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    return df


def summaries_frame(
    summaries: Iterable[CategorySummary], grand_total: Decimal
) -> pd.DataFrame:
    rows = [
        {
            "category": s.category,
            "total": float(s.total_amount),
            "count": s.transaction_count,
            "percentage": float(percentage_of_total(s.total_amount, grand_total)),
        }
        for s in summaries
    ]
    return pd.DataFrame(rows, columns=["category", "total", "count", "percentage"])

import json
import pytest
from datetime import datetime
from decimal import Decimal

from expenses.aggregator import summarize_by_category
from expenses.domain import CategorySummary, Expense
from expenses.lazy import recent_expenses
from expenses.transforms import (
    expenses_frame,
    load_seed,
    record_from_document,
    record_to_document,
    records_from_snapshot,
    summaries_frame,
)

NOW = datetime(2025, 3, 15, 14, 30)


def make_exp(id, amount, category="Food", created_at=NOW):
    return Expense(id=id, owner="u1", title=f"Item {id}", category=category,
                   amount=Decimal(amount), created_at=created_at)


def test_record_from_document_defaults():
    e = record_from_document("d1", {"title": "Coffee", "owner": "u1"}, NOW)

    assert e.category == "General"
    assert e.amount == Decimal("0")
    assert e.created_at == NOW


def test_record_without_title_is_skipped():
    assert record_from_document("d1", {"category": "Food", "amount": 3}, NOW) is None


def test_records_from_snapshot_keeps_valid_documents():
    documents = [
        ("a", {"title": "Coffee", "category": "Food", "amount": "3.50", "created_at": "2025-03-15T08:00:00"}),
        ("b", {"category": "Food", "amount": "1"}),
        ("c", {"title": "Bus", "amount": 2.4, "created_at": datetime(2025, 3, 14, 9, 0)}),
    ]
    records = records_from_snapshot(documents, NOW)

    assert [e.id for e in records] == ["a", "c"]
    assert records[0].created_at == datetime(2025, 3, 15, 8, 0)
    assert records[1].amount == Decimal("2.4")
    assert records[1].category == "General"


def test_document_round_trip_keeps_fields():
    e = make_exp("x", "12.34")
    back = record_from_document("x", record_to_document(e), NOW)
    assert back == e




def test_load_seed(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps({"expenses": [
        {"id": "e1", "title": "Coffee", "category": "Food", "amount": "3.50", "created_at": "2025-03-15T08:00:00"},
        {"id": "e2", "title": "Phone", "amount": "15.00", "created_at": "2025-03-01T09:00:00"},
    ]}), encoding="utf-8")

    records = load_seed(path, now=NOW)

    assert [e.id for e in records] == ["e1", "e2"]
    assert records[1].category == "General"


def test_expenses_frame_columns():
    df = expenses_frame((make_exp("1", "3.50"), make_exp("2", "2.40", "Transport")))

    assert list(df.columns) == ["id", "date", "title", "category", "amount"]
    assert df["amount"].sum() == pytest.approx(5.9)
    assert len(expenses_frame(())) == 0


def test_summaries_frame_percentages():
    summaries = (
        CategorySummary("Food", Decimal("3"), 2),
        CategorySummary("Transport", Decimal("1"), 1),
    )
    df = summaries_frame(summaries, Decimal("4"))

    assert df["percentage"].tolist() == [75.0, 25.0]
    assert summaries_frame((), Decimal("0")).empty


def test_recent_expenses_newest_first_and_limited():
    records = tuple(make_exp(str(i), "1", created_at=datetime(2025, 3, i + 1)) for i in range(12))
    recent = list(recent_expenses(records, 10))

    assert len(recent) == 10
    assert recent[0].id == "11"
    assert recent[-1].id == "2"


def test_non_finite_stored_amounts_read_as_zero():
    documents = [
        ("a", {"title": "Coffee", "category": "Food", "amount": "NaN"}),
        ("b", {"title": "Bus", "category": "Transport", "amount": "Infinity"}),
        ("c", {"title": "Lunch", "category": "Food", "amount": "-inf"}),
        ("d", {"title": "Train", "category": "Transport", "amount": "4.20"}),
    ]
    records = records_from_snapshot(documents, NOW)

    assert [e.amount for e in records] == [Decimal("0"), Decimal("0"), Decimal("0"), Decimal("4.20")]
    summaries = summarize_by_category(records)
    assert [(s.category, s.total_amount) for s in summaries] == [
        ("Transport", Decimal("4.20")),
        ("Food", Decimal("0")),
    ]

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from expenses.domain import Expense, NewExpense
from expenses.errors import StoreError
from expenses.store import InMemoryRecordStore, Subscription


class FakeClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def make_store(clock=None):
    counter = iter(range(1, 1000))
    return InMemoryRecordStore(
        clock=clock or FakeClock(datetime(2025, 3, 15, 9, 0)),
        id_factory=lambda: f"id{next(counter)}",
    )


def new(owner="u1", title="Coffee", category="Food", amount="3.50"):
    return NewExpense(owner=owner, title=title, category=category, amount=Decimal(amount))


def test_subscribe_delivers_initial_snapshot():
    store = make_store()
    store.create(new())
    received = []

    store.subscribe("u1", received.append)

    assert len(received) == 1
    assert [e.title for e in received[0]] == ["Coffee"]


def test_create_assigns_id_and_store_timestamp():
    clock = FakeClock(datetime(2025, 3, 15, 9, 0))
    store = make_store(clock)

    first = store.create(new())
    clock.advance(minutes=5)
    second = store.create(new(title="Bus"))

    assert (first, second) == ("id1", "id2")
    assert [e.created_at for e in store.snapshot("u1")] == [
        datetime(2025, 3, 15, 9, 0),
        datetime(2025, 3, 15, 9, 5),
    ]


def test_every_push_is_full_snapshot_for_owner_only():
    store = make_store()
    received = []
    store.subscribe("u1", received.append)

    store.create(new(title="Coffee"))
    store.create(new(owner="u2", title="Someone else"))
    store.create(new(title="Bus"))

    assert [[e.title for e in snap] for snap in received] == [[], ["Coffee"], ["Coffee", "Bus"]]


def test_cancelled_subscription_receives_nothing():
    store = make_store()
    received = []
    sub = store.subscribe("u1", received.append)

    sub.cancel()
    sub.cancel()
    store.create(new())

    assert len(received) == 1
    assert not sub.active
    assert store.listener_count == 0


def test_subscription_context_manager_releases_on_error():
    store = make_store()
    with pytest.raises(RuntimeError):
        with store.subscribe("u1", lambda snap: None):
            assert store.listener_count == 1
            raise RuntimeError("view crashed")
    assert store.listener_count == 0


def test_failing_initial_callback_does_not_leak_listener():
    store = make_store()

    def broken(snapshot):
        raise ValueError("render failed")

    with pytest.raises(ValueError):
        store.subscribe("u1", broken)
    assert store.listener_count == 0


def test_failed_write_raises_store_error():
    store = make_store()
    store.fail_writes("Network unavailable")

    with pytest.raises(StoreError) as exc:
        store.create(new())
    assert exc.value.message == "Network unavailable"
    assert store.snapshot("u1") == ()

    store.fail_writes(None)
    store.create(new())
    assert len(store.snapshot("u1")) == 1


def test_report_error_reaches_error_handlers():
    store = make_store()
    errors = []
    store.subscribe("u1", lambda snap: None, errors.append)
    store.subscribe("u2", lambda snap: None)

    store.report_error("Permission denied")

    assert [e.message for e in errors] == ["Permission denied"]


def test_seed_keeps_ids_and_timestamps():
    store = make_store()
    received = []
    store.subscribe("u1", received.append)
    ts = datetime(2025, 1, 2, 3, 4)
    store.seed([Expense("s1", "u1", "Phone", "Bills", Decimal("15.00"), ts)])

    assert received[-1] == (Expense("s1", "u1", "Phone", "Bills", Decimal("15.00"), ts),)


def test_subscription_handle_is_idempotent():
    calls = []
    sub = Subscription(lambda: calls.append(1))
    with sub:
        pass
    sub.cancel()
    assert calls == [1]

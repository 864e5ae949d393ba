"""Record store contract and an in-memory implementation.

A subscription delivers the full set of the owner's expenses immediately and
again after every change. Each delivery replaces the previous one; nothing is
sent as a delta. ``subscribe`` hands back a ``Subscription`` that the caller
must cancel when the view goes away.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from itertools import count
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from expenses.domain import Expense, NewExpense
from expenses.errors import StoreError
from expenses.transforms import record_to_document, records_from_snapshot

logger = logging.getLogger(__name__)

SnapshotHandler = Callable[[Tuple[Expense, ...]], Any]
ErrorHandler = Callable[[StoreError], Any]


class Subscription:
    """Cancellation handle for a live query.

    ``cancel`` is idempotent. Used as a context manager the subscription is
    cancelled on every exit path.
    """

    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._cancel()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class RecordStore(ABC):

    @abstractmethod
    def subscribe(
        self,
        owner: str,
        on_snapshot: SnapshotHandler,
        on_error: Optional[ErrorHandler] = None,
    ) -> Subscription:
        pass

    @abstractmethod
    def create(self, new: NewExpense) -> str:
        """Persist ``new`` with a store-assigned timestamp and return its id."""


class InMemoryRecordStore(RecordStore):
    """Document store kept in a dict, with snapshot listeners per owner.

    Snapshots come back in insertion order, not sorted; display code sorts
    them itself. ``clock`` stands in for the server clock.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = lambda: uuid4().hex,
    ):
        self._clock = clock
        self._id_factory = id_factory
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._listeners: Dict[int, Tuple[str, SnapshotHandler, Optional[ErrorHandler]]] = {}
        self._ids = count(1)
        self._write_error: Optional[str] = None

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def snapshot(self, owner: str) -> Tuple[Expense, ...]:
        documents = (
            (doc_id, doc) for doc_id, doc in self._documents.items()
            if doc.get("owner") == owner
        )
        return records_from_snapshot(documents, self._clock())

    def subscribe(self, owner, on_snapshot, on_error=None) -> Subscription:
        key = next(self._ids)
        self._listeners[key] = (owner, on_snapshot, on_error)
        logger.debug("Listener %d attached for %s", key, owner)

        def _remove() -> None:
            self._listeners.pop(key, None)
            logger.debug("Listener %d removed", key)

        subscription = Subscription(_remove)
        try:
            on_snapshot(self.snapshot(owner))
        except BaseException:
            subscription.cancel()
            raise
        return subscription

    def create(self, new: NewExpense) -> str:
        if self._write_error is not None:
            raise StoreError(self._write_error)

        doc_id = self._id_factory()
        self._documents[doc_id] = {
            "owner": new.owner,
            "title": new.title,
            "category": new.category,
            "amount": str(new.amount),
            "created_at": self._clock(),
        }
        logger.info("Created expense %s for %s", doc_id, new.owner)
        self._publish(new.owner)
        return doc_id

    def seed(self, records: Iterable[Expense]) -> None:
        """Insert existing records as-is, keeping their ids and timestamps."""
        owners = set()
        for e in records:
            doc = record_to_document(e)
            doc["created_at"] = e.created_at
            self._documents[e.id] = doc
            owners.add(e.owner)
        for owner in owners:
            self._publish(owner)

    def fail_writes(self, message: Optional[str]) -> None:
        """Make ``create`` raise ``StoreError(message)``; ``None`` restores writes."""
        self._write_error = message

    def report_error(self, message: str) -> None:
        """Push a failure to every listener, as a dropped connection would."""
        error = StoreError(message)
        logger.warning("Store error: %s", message)
        for owner, _, on_error in list(self._listeners.values()):
            if on_error is not None:
                on_error(error)

    def _publish(self, owner: str) -> None:
        listeners: List[SnapshotHandler] = [
            handler for o, handler, _ in list(self._listeners.values()) if o == owner
        ]
        if not listeners:
            return
        snapshot = self.snapshot(owner)
        for handler in listeners:
            handler(snapshot)

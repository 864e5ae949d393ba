import asyncio
import logging
from typing import Optional, Tuple, Union

from expenses.domain import Expense
from expenses.errors import StoreError
from expenses.store import RecordStore, Subscription

logger = logging.getLogger(__name__)

Snapshot = Tuple[Expense, ...]


class SnapshotStream:
    """Async iterator over an owner's snapshots.

    The live query is opened on ``__aenter__`` (or the first ``__anext__``)
    and cancelled on ``__aexit__``, on ``aclose`` and when the store reports
    an error, which is re-raised as ``StoreError``.

    With ``coalesce`` set, snapshots that piled up while the consumer was busy
    are skipped and only the newest one is yielded.
    """

    def __init__(self, store: RecordStore, owner: str, coalesce: bool = False):
        self.store = store
        self.owner = owner
        self.coalesce = coalesce
        self._queue: "Optional[asyncio.Queue[Union[Snapshot, StoreError]]]" = None
        self._subscription: Optional[Subscription] = None
        self._closed = False

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def open(self) -> None:
        if self._subscription is None and not self._closed:
            # created here so the queue binds to the loop that consumes it
            self._queue = asyncio.Queue()
            self._subscription = self.store.subscribe(
                self.owner, self._queue.put_nowait, self._queue.put_nowait
            )

    async def aclose(self) -> None:
        self.close()

    def close(self) -> None:
        self._closed = True
        if self._subscription is not None:
            self._subscription.cancel()
            logger.debug("Snapshot stream for %s closed", self.owner)

    async def __aenter__(self) -> "SnapshotStream":
        self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __aiter__(self) -> "SnapshotStream":
        return self

    async def __anext__(self) -> Snapshot:
        if self._closed:
            raise StopAsyncIteration
        self.open()
        try:
            item = await self._queue.get()
            while self.coalesce and not isinstance(item, StoreError) and not self._queue.empty():
                item = self._queue.get_nowait()
        except BaseException:
            self.close()
            raise
        if isinstance(item, StoreError):
            self.close()
            raise item
        return item


def watch_expenses(store: RecordStore, owner: str, coalesce: bool = False) -> SnapshotStream:
    return SnapshotStream(store, owner, coalesce=coalesce)

# src/storage/document_store.py

"""Interface of the external document store the engine reads from."""

from collections.abc import AsyncIterator, Sequence
from typing import Any, NamedTuple, Protocol

Record = dict[str, Any]
Snapshot = list[Record]


class FieldFilter(NamedTuple):
    """``field op value`` predicate, e.g. ``("productId", "==", "p1")``."""

    field: str
    op: str
    value: Any


class Ordering(NamedTuple):
    """Order results by *field*; newest-first by default."""

    field: str
    descending: bool = True


class SnapshotStream(Protocol):
    """Push stream of snapshots for one live query.

    Iterating yields each snapshot in delivery order.  ``close()`` must
    be idempotent, and once it has been called no further snapshot is
    yielded even if one was already queued.
    """

    def __aiter__(self) -> AsyncIterator[Snapshot]: ...

    def close(self) -> None: ...

    @property
    def closed(self) -> bool: ...


class DocumentStore(Protocol):
    """Query, subscribe and write operations of the document store."""

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Ordering | None = None,
        limit: int | None = None,
    ) -> list[Record]: ...

    async def subscribe(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
    ) -> SnapshotStream: ...

    async def add(self, collection: str, record: Record) -> str: ...

    async def update(
        self, collection: str, doc_id: str, changes: Record,
    ) -> None: ...

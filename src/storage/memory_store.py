# src/storage/memory_store.py

"""In-memory document store with live snapshot delivery.

Backs the headless CLI (seeded from ``data/catalog.json``) and the test
suite.  Behaves like the hosted store the engine targets: queries return
copies, every write re-publishes the matching snapshot to each live
subscription on that collection, and a new subscription receives its
initial snapshot straight away.
"""

import asyncio
import json
import logging
import operator
import uuid
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from src.models.timestamps import StoreTimestamp, to_epoch_millis
from src.storage.document_store import (
    FieldFilter,
    Ordering,
    Record,
    Snapshot,
)

logger = logging.getLogger("gearzone.store")

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda field_value, options: field_value in options,
    "array-contains": lambda field_value, item: (
        isinstance(field_value, (list, tuple)) and item in field_value
    ),
}

_CLOSED = object()


def _matches(record: Record, filters: Sequence[FieldFilter]) -> bool:
    for flt in filters:
        if flt.field not in record:
            return False
        try:
            if not _OPERATORS[flt.op](record[flt.field], flt.value):
                return False
        except TypeError:
            return False
    return True


def _order_key(value: Any) -> tuple[int, Any]:
    """Comparable key; timestamps of any shape compare as millis."""
    if value is None:
        return (0, 0)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    if isinstance(value, str):
        millis = to_epoch_millis(value)
        return (1, millis) if millis else (2, value)
    return (1, to_epoch_millis(value))


class MemorySnapshotStream:
    """Queue-backed :class:`SnapshotStream` for one subscription."""

    def __init__(
        self, on_close: Callable[["MemorySnapshotStream"], None],
    ) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        self._on_close = on_close

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, snapshot: Snapshot) -> None:
        if not self._closed:
            self._queue.put_nowait(snapshot)

    def fail(self, exc: BaseException) -> None:
        if not self._closed:
            self._queue.put_nowait(exc)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._on_close(self)
        # Wake a consumer blocked on get()
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "MemorySnapshotStream":
        return self

    async def __anext__(self) -> Snapshot:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if self._closed or item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            self.close()
            raise item
        snapshot: Snapshot = item
        return snapshot


class InMemoryDocumentStore:
    """Dictionary-backed :class:`DocumentStore` implementation."""

    def __init__(
        self, collections: dict[str, list[Record]] | None = None,
    ) -> None:
        self._collections: dict[str, dict[str, Record]] = {}
        self._streams: dict[
            str,
            list[tuple[Sequence[FieldFilter], MemorySnapshotStream]],
        ] = {}
        self._failures: dict[str, BaseException] = {}
        for name, records in (collections or {}).items():
            for record in records:
                self._insert(name, record)

    @classmethod
    def from_json(cls, path: Path) -> "InMemoryDocumentStore":
        """Seed a store from a ``{collection: [records]}`` JSON file."""
        with open(path, encoding="utf-8") as f:
            data: dict[str, list[Record]] = json.load(f)
        store = cls(data)
        logger.info(
            "Seeded in-memory store from %s (%s)",
            path,
            ", ".join(
                f"{name}={len(docs)}"
                for name, docs in store._collections.items()
            ),
        )
        return store

    # ── Private helpers ──────────────────────────────────

    def _insert(self, collection: str, record: Record) -> str:
        doc = dict(record)
        doc_id = str(doc.get("id") or uuid.uuid4().hex)
        doc["id"] = doc_id
        self._collections.setdefault(collection, {})[doc_id] = doc
        return doc_id

    def _select(
        self, collection: str, filters: Sequence[FieldFilter],
    ) -> list[Record]:
        docs = self._collections.get(collection, {}).values()
        return [dict(d) for d in docs if _matches(d, filters)]

    def _raise_if_failing(self, collection: str) -> None:
        exc = self._failures.get(collection)
        if exc is not None:
            raise exc

    def _publish(self, collection: str) -> None:
        for filters, stream in list(self._streams.get(collection, [])):
            stream.deliver(self._select(collection, filters))

    def _detach(self, collection: str, stream: MemorySnapshotStream) -> None:
        entries = self._streams.get(collection, [])
        self._streams[collection] = [
            (f, s) for f, s in entries if s is not stream
        ]
        logger.debug("Subscription on '%s' closed", collection)

    # ── DocumentStore API ────────────────────────────────

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Ordering | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        await asyncio.sleep(0)
        self._raise_if_failing(collection)
        results = self._select(collection, filters)
        if order_by is not None:
            results.sort(
                key=lambda r: _order_key(r.get(order_by.field)),
                reverse=order_by.descending,
            )
        if limit is not None:
            results = results[:limit]
        return results

    async def subscribe(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
    ) -> MemorySnapshotStream:
        await asyncio.sleep(0)
        self._raise_if_failing(collection)
        stream = MemorySnapshotStream(
            lambda s: self._detach(collection, s)
        )
        self._streams.setdefault(collection, []).append(
            (tuple(filters), stream)
        )
        stream.deliver(self._select(collection, filters))
        logger.debug(
            "Subscription opened on '%s' with %s", collection, filters
        )
        return stream

    async def add(self, collection: str, record: Record) -> str:
        await asyncio.sleep(0)
        self._raise_if_failing(collection)
        doc = dict(record)
        doc.setdefault("createdAt", StoreTimestamp.now())
        doc_id = self._insert(collection, doc)
        self._publish(collection)
        return doc_id

    async def update(
        self, collection: str, doc_id: str, changes: Record,
    ) -> None:
        await asyncio.sleep(0)
        self._raise_if_failing(collection)
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            msg = f"no document '{doc_id}' in '{collection}'"
            raise KeyError(msg)
        docs[doc_id].update(changes)
        self._publish(collection)

    # ── Fault injection / inspection ─────────────────────

    def fail_collection(
        self, collection: str, exc: BaseException | None = None,
    ) -> None:
        """Make every operation on *collection* raise *exc*."""
        self._failures[collection] = exc or ConnectionError(
            f"store unavailable for '{collection}'"
        )

    def restore_collection(self, collection: str) -> None:
        self._failures.pop(collection, None)

    def break_subscriptions(
        self, collection: str, exc: BaseException | None = None,
    ) -> None:
        """Push an error into every live stream on *collection*."""
        error = exc or ConnectionError("stream disconnected")
        for _filters, stream in list(self._streams.get(collection, [])):
            stream.fail(error)

    def live_subscriptions(self, collection: str) -> int:
        return len(self._streams.get(collection, []))

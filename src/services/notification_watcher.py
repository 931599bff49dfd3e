# src/services/notification_watcher.py

"""Live unread-notification counter bound to the current identity.

The watcher is a two-state machine:

* **idle**: no identity, or an identity without a live subscription
  (never subscribed yet, or the stream dropped).
* **subscribed**: exactly one live push subscription, filtered to the
  unread notifications of one identity.

Every identity switch tears the old subscription down synchronously,
before anything else can run on the event loop, and only then schedules
the new one.  A generation counter stamps each subscription so that a
snapshot from a superseded stream is never applied, even if it was
already queued when the switch happened.
"""

import asyncio
import logging
from collections.abc import Callable

from src.config.settings import Settings
from src.models.errors import SubscriptionError
from src.models.notification import (
    IDLE,
    SUBSCRIBED,
    NotificationSubscriptionState,
)
from src.services.identity import IdentitySource
from src.storage.document_store import (
    DocumentStore,
    FieldFilter,
    Snapshot,
    SnapshotStream,
)

logger = logging.getLogger("gearzone.notifications")

IncreaseListener = Callable[[int, int], None]


class NotificationWatcher:
    """Tracks the unread notification count of the signed-in user."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self.state = NotificationSubscriptionState()
        self._generation = 0
        self._open_lock = asyncio.Lock()
        self._opening: asyncio.Task[None] | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._listeners: list[IncreaseListener] = []
        self._synced = asyncio.Event()
        self._unbind: Callable[[], None] | None = None

    # ── Read-only state ──────────────────────────────────

    @property
    def identity(self) -> str | None:
        return self.state.identity

    @property
    def unread_count(self) -> int:
        return self.state.unread_count

    @property
    def is_subscribed(self) -> bool:
        return self.state.phase == SUBSCRIBED

    def add_increase_listener(
        self, listener: IncreaseListener,
    ) -> Callable[[], None]:
        """Register ``listener(previous, current)`` for count increases."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # ── Transitions ──────────────────────────────────────

    def switch_identity(
        self, identity: str | None,
    ) -> asyncio.Task[None] | None:
        """Move the watcher to *identity*.

        Teardown of the current subscription happens before this
        method returns.  When *identity* is present, the new
        subscription is opened in a task that is returned so callers
        can await it.  Must run inside the event loop when an identity
        is given.
        """
        if identity is not None and identity == self.state.identity:
            if self.state.phase == SUBSCRIBED:
                return None
            if self._opening is not None and not self._opening.done():
                return self._opening

        self._generation += 1
        generation = self._generation
        self._teardown(reset_count=identity != self.state.identity)
        self.state.identity = identity

        if identity is None:
            logger.info("Notification watcher idle (no identity)")
            self._opening = None
            return None

        self._opening = asyncio.get_running_loop().create_task(
            self._open(identity, generation),
            name=f"notifications-open-{identity}",
        )
        return self._opening

    async def set_identity(self, identity: str | None) -> None:
        """Awaitable form of :meth:`switch_identity`."""
        opening = self.switch_identity(identity)
        if opening is not None:
            await opening

    def bind(self, source: IdentitySource) -> asyncio.Task[None] | None:
        """Follow *source*: subscribe now and on every identity change."""
        if self._unbind is not None:
            self._unbind()
        self._unbind = source.add_listener(self.switch_identity)
        return self.switch_identity(source.current)

    async def aclose(self) -> None:
        """Tear down for good and wait for background tasks to finish."""
        if self._unbind is not None:
            self._unbind()
            self._unbind = None
        pending = [
            t for t in (self._opening, self._consumer)
            if t is not None and not t.done()
        ]
        self.switch_identity(None)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def wait_until_synced(
        self, timeout: float | None = None,
    ) -> int:
        """Wait for the first snapshot of the current subscription.

        Raises ``TimeoutError`` when nothing arrives in time.
        """
        await asyncio.wait_for(
            self._synced.wait(),
            Settings.NOTIFICATION_SYNC_TIMEOUT if timeout is None else timeout,
        )
        return self.state.unread_count

    # ── Internals ────────────────────────────────────────

    def _teardown(self, reset_count: bool) -> None:
        handle = self.state.subscription
        consumer = self._consumer
        self.state.subscription = None
        self.state.phase = IDLE
        self._consumer = None
        self._synced.clear()
        if reset_count:
            self.state.unread_count = 0
        if handle is not None:
            handle.close()
            logger.info(
                "Closed notification subscription for %s",
                self.state.identity,
            )
        if consumer is not None and not consumer.done():
            consumer.cancel()

    async def _open(self, identity: str, generation: int) -> None:
        async with self._open_lock:
            if generation != self._generation:
                return
            try:
                handle = await self._store.subscribe(
                    "notifications",
                    [
                        FieldFilter("userId", "==", identity),
                        FieldFilter("read", "==", False),
                    ],
                )
            except Exception as exc:
                error = SubscriptionError(
                    f"could not subscribe for {identity}: {exc}"
                )
                logger.error("%s", error, exc_info=True)
                return

            if generation != self._generation:
                handle.close()
                logger.debug(
                    "Subscription for %s superseded while opening",
                    identity,
                )
                return

            self.state.subscription = handle
            self.state.phase = SUBSCRIBED
            self._consumer = asyncio.create_task(
                self._consume(handle, generation),
                name=f"notifications-{identity}",
            )
            logger.info(
                "Subscribed to unread notifications for %s", identity
            )

    async def _consume(
        self, handle: SnapshotStream, generation: int,
    ) -> None:
        try:
            async for snapshot in handle:
                if generation != self._generation:
                    return
                self._apply_snapshot(snapshot)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if generation == self._generation:
                self._mark_disconnected(handle, exc)
            return

        if generation == self._generation:
            self._mark_disconnected(handle, None)

    def _mark_disconnected(
        self, handle: SnapshotStream, exc: Exception | None,
    ) -> None:
        handle.close()
        self.state.subscription = None
        self.state.phase = IDLE
        self._consumer = None
        error = SubscriptionError(
            f"notification stream for {self.state.identity} "
            f"ended: {exc or 'disconnected'}"
        )
        logger.warning(
            "%s; keeping last unread count %d",
            error,
            self.state.unread_count,
            exc_info=exc,
        )

    def _apply_snapshot(self, snapshot: Snapshot) -> None:
        previous = self.state.unread_count
        current = len(snapshot)
        self.state.unread_count = current
        self._synced.set()
        if current <= previous:
            return
        logger.debug("Unread count increased %d -> %d", previous, current)
        for listener in list(self._listeners):
            try:
                listener(previous, current)
            except Exception:
                logger.error(
                    "Unread increase listener %r failed",
                    listener,
                    exc_info=True,
                )

# tests/test_notification_watcher.py

"""Tests for the NotificationWatcher state machine."""

import asyncio
import unittest
from collections.abc import Sequence
from typing import Any
from unittest.mock import patch

from src.config.settings import Settings
from src.services.identity import IdentitySession
from src.services.notification_watcher import NotificationWatcher
from src.storage.document_store import FieldFilter
from src.storage.memory_store import InMemoryDocumentStore


def _unread(user_id: str, count: int, start: int = 0) -> list[dict[str, Any]]:
    return [
        {"id": f"{user_id}-{i}", "userId": user_id, "read": False}
        for i in range(start, start + count)
    ]


async def _settle() -> None:
    """Let queued snapshots reach the consumer task."""
    for _ in range(5):
        await asyncio.sleep(0)


class TestSubscriptionLifecycle(unittest.IsolatedAsyncioTestCase):
    """Idle/Subscribed transitions."""

    async def asyncSetUp(self) -> None:
        self.store = InMemoryDocumentStore({
            "notifications": _unread("alice", 2) + _unread("bob", 1) + [
                {"id": "read-1", "userId": "alice", "read": True},
            ],
        })
        self.watcher = NotificationWatcher(self.store)

    async def asyncTearDown(self) -> None:
        await self.watcher.aclose()

    async def test_starts_idle(self) -> None:
        self.assertFalse(self.watcher.is_subscribed)
        self.assertEqual(self.watcher.unread_count, 0)
        self.assertIsNone(self.watcher.identity)

    async def test_identity_subscribes_and_counts_unread(self) -> None:
        await self.watcher.set_identity("alice")
        count = await self.watcher.wait_until_synced(timeout=1)
        self.assertTrue(self.watcher.is_subscribed)
        self.assertEqual(count, 2)
        self.assertEqual(self.store.live_subscriptions("notifications"), 1)

    async def test_sign_out_closes_and_resets(self) -> None:
        await self.watcher.set_identity("alice")
        await self.watcher.wait_until_synced(timeout=1)
        await self.watcher.set_identity(None)
        self.assertFalse(self.watcher.is_subscribed)
        self.assertEqual(self.watcher.unread_count, 0)
        self.assertEqual(self.store.live_subscriptions("notifications"), 0)

    async def test_same_identity_is_noop(self) -> None:
        await self.watcher.set_identity("alice")
        handle = self.watcher.state.subscription
        self.assertIsNone(self.watcher.switch_identity("alice"))
        self.assertIs(self.watcher.state.subscription, handle)

    async def test_switch_is_synchronous_teardown(self) -> None:
        await self.watcher.set_identity("alice")
        old = self.watcher.state.subscription
        task = self.watcher.switch_identity("bob")
        # Old handle closed before the switch call returned
        self.assertTrue(old.closed)
        self.assertFalse(self.watcher.is_subscribed)
        assert task is not None
        await task

    async def test_switch_a_to_b_is_exclusive(self) -> None:
        await self.watcher.set_identity("alice")
        await self.watcher.wait_until_synced(timeout=1)
        await self.watcher.set_identity("bob")
        count = await self.watcher.wait_until_synced(timeout=1)
        self.assertEqual(count, 1)
        self.assertEqual(self.store.live_subscriptions("notifications"), 1)

        # New unread for alice must not move bob's badge
        await self.store.add("notifications", _unread("alice", 1, start=9)[0])
        await _settle()
        self.assertEqual(self.watcher.unread_count, 1)

    async def test_rapid_switches_leave_one_subscription(self) -> None:
        first = self.watcher.switch_identity("alice")
        second = self.watcher.switch_identity("bob")
        await asyncio.gather(*(t for t in (first, second) if t))
        await self.watcher.wait_until_synced(timeout=1)
        self.assertEqual(self.watcher.identity, "bob")
        self.assertEqual(self.watcher.unread_count, 1)
        self.assertEqual(self.store.live_subscriptions("notifications"), 1)

    async def test_zero_timeout_is_honoured(self) -> None:
        """An explicit zero timeout fails at once, not after the default."""
        loop = asyncio.get_running_loop()
        started = loop.time()
        with patch.object(Settings, "NOTIFICATION_SYNC_TIMEOUT", 30.0):
            with self.assertRaises(TimeoutError):
                await self.watcher.wait_until_synced(timeout=0)
        self.assertLess(loop.time() - started, 1.0)

    async def test_close_is_idempotent(self) -> None:
        await self.watcher.set_identity("alice")
        handle = self.watcher.state.subscription
        await self.watcher.aclose()
        handle.close()
        await self.watcher.aclose()
        self.assertEqual(self.store.live_subscriptions("notifications"), 0)


class TestIncreaseSignal(unittest.IsolatedAsyncioTestCase):
    """Increase detection on pushed snapshots."""

    async def asyncSetUp(self) -> None:
        self.store = InMemoryDocumentStore({
            "notifications": _unread("alice", 2),
        })
        self.watcher = NotificationWatcher(self.store)
        self.signals: list[tuple[int, int]] = []
        self.watcher.add_increase_listener(
            lambda prev, cur: self.signals.append((prev, cur))
        )
        await self.watcher.set_identity("alice")
        await self.watcher.wait_until_synced(timeout=1)
        self.signals.clear()

    async def asyncTearDown(self) -> None:
        await self.watcher.aclose()

    async def test_two_to_five_emits_once(self) -> None:
        for record in _unread("alice", 3, start=2):
            self.store._insert("notifications", record)
        self.store._publish("notifications")
        await _settle()
        self.assertEqual(self.watcher.unread_count, 5)
        self.assertEqual(self.signals, [(2, 5)])

    async def test_five_to_two_emits_nothing(self) -> None:
        for record in _unread("alice", 3, start=2):
            self.store._insert("notifications", record)
        self.store._publish("notifications")
        await _settle()
        self.signals.clear()

        for doc_id in ("alice-2", "alice-3", "alice-4"):
            self.store._collections["notifications"][doc_id]["read"] = True
        self.store._publish("notifications")
        await _settle()
        self.assertEqual(self.watcher.unread_count, 2)
        self.assertEqual(self.signals, [])

    async def test_mark_read_decreases_without_signal(self) -> None:
        await self.store.update("notifications", "alice-0", {"read": True})
        await _settle()
        self.assertEqual(self.watcher.unread_count, 1)
        self.assertEqual(self.signals, [])

    async def test_failing_listener_does_not_stop_stream(self) -> None:
        def boom(_prev: int, _cur: int) -> None:
            raise RuntimeError("listener bug")

        self.watcher.add_increase_listener(boom)
        await self.store.add("notifications", _unread("alice", 1, start=7)[0])
        await _settle()
        self.assertEqual(self.watcher.unread_count, 3)
        self.assertTrue(self.watcher.is_subscribed)
        self.assertEqual(self.signals, [(2, 3)])

    async def test_removed_listener_not_called(self) -> None:
        calls: list[int] = []
        remove = self.watcher.add_increase_listener(
            lambda _p, cur: calls.append(cur)
        )
        remove()
        await self.store.add("notifications", _unread("alice", 1, start=7)[0])
        await _settle()
        self.assertEqual(calls, [])


class TestStaleEvents(unittest.IsolatedAsyncioTestCase):
    """Events queued for a superseded subscription are discarded."""

    async def test_queued_snapshot_dropped_after_switch(self) -> None:
        store = InMemoryDocumentStore({
            "notifications": _unread("alice", 1) + _unread("bob", 1),
        })
        watcher = NotificationWatcher(store)
        await watcher.set_identity("alice")
        await watcher.wait_until_synced(timeout=1)

        # Queue a snapshot for alice, then switch before it is consumed
        alice_stream = watcher.state.subscription
        alice_stream.deliver(_unread("alice", 7))
        task = watcher.switch_identity("bob")
        assert task is not None
        await task
        await _settle()

        self.assertEqual(watcher.identity, "bob")
        self.assertEqual(watcher.unread_count, 1)
        await watcher.aclose()


class TestStreamFailure(unittest.IsolatedAsyncioTestCase):
    """Subscription errors degrade to the last known count."""

    async def asyncSetUp(self) -> None:
        self.store = InMemoryDocumentStore({
            "notifications": _unread("alice", 3),
        })
        self.watcher = NotificationWatcher(self.store)
        await self.watcher.set_identity("alice")
        await self.watcher.wait_until_synced(timeout=1)

    async def asyncTearDown(self) -> None:
        await self.watcher.aclose()

    async def test_error_keeps_last_count(self) -> None:
        with self.assertLogs("gearzone.notifications", level="WARNING"):
            self.store.break_subscriptions("notifications")
            await _settle()
        self.assertEqual(self.watcher.unread_count, 3)
        self.assertFalse(self.watcher.is_subscribed)
        self.assertEqual(self.watcher.identity, "alice")

    async def test_resubscribe_same_identity_after_error(self) -> None:
        self.store.break_subscriptions("notifications")
        await _settle()
        await self.watcher.set_identity("alice")
        await self.watcher.wait_until_synced(timeout=1)
        self.assertTrue(self.watcher.is_subscribed)
        self.assertEqual(self.watcher.unread_count, 3)

    async def test_subscribe_failure_stays_idle(self) -> None:
        self.store.fail_collection("notifications")
        with self.assertLogs("gearzone.notifications", level="ERROR"):
            await self.watcher.set_identity("bob")
        self.assertFalse(self.watcher.is_subscribed)
        self.assertEqual(self.watcher.unread_count, 0)


class _SlowSubscribeStore(InMemoryDocumentStore):
    """Store whose subscribe() suspends long enough to be superseded."""

    async def subscribe(
        self, collection: str, filters: Sequence[FieldFilter] = (),
    ) -> Any:
        await asyncio.sleep(0.01)
        return await super().subscribe(collection, filters)


class TestSupersededOpening(unittest.IsolatedAsyncioTestCase):
    """A switch during an in-flight open never installs the stale handle."""

    async def test_stale_open_is_closed(self) -> None:
        store = _SlowSubscribeStore({
            "notifications": _unread("alice", 4) + _unread("bob", 2),
        })
        watcher = NotificationWatcher(store)
        opening_alice = watcher.switch_identity("alice")
        await asyncio.sleep(0)
        opening_bob = watcher.switch_identity("bob")
        await asyncio.gather(opening_alice, opening_bob)  # type: ignore[arg-type]
        count = await watcher.wait_until_synced(timeout=1)

        self.assertEqual(count, 2)
        self.assertEqual(store.live_subscriptions("notifications"), 1)
        await watcher.aclose()
        self.assertEqual(store.live_subscriptions("notifications"), 0)


class TestIdentityBinding(unittest.IsolatedAsyncioTestCase):
    """Following an IdentitySession."""

    async def test_follows_sign_in_and_out(self) -> None:
        store = InMemoryDocumentStore({"notifications": _unread("alice", 2)})
        session = IdentitySession()
        watcher = NotificationWatcher(store)
        self.assertIsNone(watcher.bind(session))

        session.sign_in("alice")
        await watcher.wait_until_synced(timeout=1)
        self.assertEqual(watcher.unread_count, 2)

        session.sign_out()
        self.assertEqual(watcher.unread_count, 0)
        self.assertEqual(store.live_subscriptions("notifications"), 0)
        await watcher.aclose()

    async def test_aclose_unbinds(self) -> None:
        store = InMemoryDocumentStore({"notifications": _unread("alice", 2)})
        session = IdentitySession()
        watcher = NotificationWatcher(store)
        watcher.bind(session)
        await watcher.aclose()
        session.sign_in("alice")
        await _settle()
        self.assertIsNone(watcher.identity)
        self.assertEqual(store.live_subscriptions("notifications"), 0)


if __name__ == "__main__":
    unittest.main()

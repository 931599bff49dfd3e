# tests/test_home_feed.py

"""Integration tests for HomeFeed over the bundled seed catalog."""

import unittest

from src.config.settings import Settings
from src.models.errors import CatalogFetchError, ValidationError
from src.services.home_feed import HomeFeed
from src.services.identity import IdentitySession
from src.storage.memory_store import InMemoryDocumentStore


def _seed_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore.from_json(Settings.SEED_DATA_PATH)


class TestHomeFeedRefresh(unittest.IsolatedAsyncioTestCase):
    """Catalog load feeding ratings and the derived view."""

    async def asyncSetUp(self) -> None:
        self.store = _seed_store()
        self.feed = HomeFeed(self.store)

    async def asyncTearDown(self) -> None:
        await self.feed.aclose()

    async def test_default_view_is_featured_first(self) -> None:
        view = await self.feed.refresh()
        self.assertEqual(
            [p.id for p in view.products],
            ["p1", "p3", "p5", "p7", "p2", "p4", "p6"],
        )
        self.assertEqual(view.total_in_catalog, 7)
        self.assertFalse(view.loading)

    async def test_ratings_aggregated_after_load(self) -> None:
        await self.feed.refresh()
        ratings = self.feed.rating_map
        self.assertEqual(ratings["p1"].average_rating, 4.5)
        self.assertEqual(ratings["p6"].average_rating, 2.0)
        self.assertEqual(ratings["p7"].review_count, 0)

    async def test_banners_and_categories(self) -> None:
        view = await self.feed.refresh()
        self.assertEqual([b.product_id for b in view.banners], ["p1", "p3"])
        self.assertEqual(view.categories[0], Settings.ALL_CATEGORIES)
        self.assertIn("Laptops", view.categories)

    async def test_min_rating_view(self) -> None:
        await self.feed.refresh()
        self.feed.update_criteria(min_rating=4.5, sort_by="rating")
        self.assertEqual(
            [p.id for p in self.feed.visible_products()],
            ["p5", "p1", "p3"],
        )

    async def test_category_and_price_sort(self) -> None:
        await self.feed.refresh()
        self.feed.update_criteria(category="Laptops", sort_by="price-low")
        self.assertEqual(
            [p.id for p in self.feed.visible_products()], ["p6", "p5"]
        )

    async def test_invalid_criteria_keep_current(self) -> None:
        self.feed.update_criteria(search_query="watch")
        with self.assertRaises(ValidationError):
            self.feed.update_criteria(price_range=(500, 100))
        self.assertEqual(self.feed.criteria.search_query, "watch")

    async def test_reset_criteria(self) -> None:
        self.feed.update_criteria(in_stock_only=True)
        self.assertFalse(self.feed.reset_criteria().in_stock_only)

    async def test_view_reuses_memoised_derivation(self) -> None:
        await self.feed.refresh()
        self.feed.view()
        self.feed.view()
        self.assertEqual(self.feed._engine.computations, 1)

    async def test_failed_refresh_keeps_previous_view(self) -> None:
        first = await self.feed.refresh()
        self.store.fail_collection("products")
        with self.assertRaises(CatalogFetchError):
            await self.feed.refresh()
        self.assertEqual(
            [p.id for p in self.feed.view().products],
            [p.id for p in first.products],
        )
        self.assertEqual(self.feed.rating_map["p1"].average_rating, 4.5)

    async def test_failed_ratings_keep_catalog_view(self) -> None:
        await self.feed.refresh()
        self.store.fail_collection("reviews")
        view = await self.feed.refresh()
        self.assertEqual(len(view.products), 7)
        self.assertEqual(self.feed.rating_map["p5"].average_rating, 5.0)


class TestHomeFeedNotifications(unittest.IsolatedAsyncioTestCase):
    """Unread badge surfaced through the feed view."""

    async def test_unread_count_in_view(self) -> None:
        feed = HomeFeed(_seed_store())
        await feed.set_identity("u1")
        await feed.notifications.wait_until_synced(timeout=1)
        self.assertEqual(feed.view().unread_count, 2)
        await feed.aclose()
        self.assertEqual(feed.view().unread_count, 0)

    async def test_follow_identity_session(self) -> None:
        feed = HomeFeed(_seed_store())
        session = IdentitySession()
        feed.follow_identity(session)
        session.sign_in("u2")
        count = await feed.notifications.wait_until_synced(timeout=1)
        self.assertEqual(count, 1)
        await feed.aclose()


if __name__ == "__main__":
    unittest.main()

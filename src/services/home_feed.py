# src/services/home_feed.py

"""Coordinates catalog sync, rating aggregation, notifications and the
filtered view behind the home screen."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from src.filters.filter_sort import FilterSortEngine
from src.models.criteria import FilterCriteria
from src.models.product import Banner, Product
from src.models.rating import RatingAggregate
from src.services.catalog_sync import CatalogSync
from src.services.identity import IdentitySource
from src.services.notification_watcher import NotificationWatcher
from src.services.rating_aggregator import RatingAggregator
from src.storage.document_store import DocumentStore

logger = logging.getLogger("gearzone.feed")


@dataclass
class FeedView:
    """Everything the home screen renders, as of one derivation."""

    products: list[Product]
    total_in_catalog: int
    criteria: FilterCriteria
    banners: list[Banner] = field(
        default_factory=lambda: list[Banner]()
    )
    categories: list[str] = field(
        default_factory=lambda: list[str]()
    )
    unread_count: int = 0
    loading: bool = False


class HomeFeed:
    """Owner of the discovery state.

    Data flows one way into the view: a catalog refresh that yields a
    new product list triggers rating aggregation; criteria changes only
    re-derive the view; the notification watcher runs on its own,
    driven by identity changes.
    """

    def __init__(self, store: DocumentStore) -> None:
        self.catalog = CatalogSync(store)
        self.ratings = RatingAggregator(store)
        self.notifications = NotificationWatcher(store)
        self._engine = FilterSortEngine()
        self._criteria = FilterCriteria()
        self._rated_products: list[Product] | None = None

    # ── Catalog & ratings ────────────────────────────────

    async def refresh(self, page_limit: int | None = None) -> FeedView:
        """Reload the catalog, then re-aggregate ratings if it changed.

        Raises:
            CatalogFetchError: the catalog could not be loaded.  The
                previous catalog and ratings stay in place.
        """
        await self.catalog.load_catalog(page_limit)
        if self.catalog.products is not self._rated_products:
            self._rated_products = self.catalog.products
            await self.ratings.aggregate_ratings(self.catalog.products)
        return self.view()

    @property
    def rating_map(self) -> Mapping[str, RatingAggregate]:
        return self.ratings.ratings

    # ── Criteria & view ──────────────────────────────────

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    def update_criteria(self, **changes: Any) -> FilterCriteria:
        """Apply criteria changes.

        Raises:
            ValidationError: the resulting criteria are inconsistent;
                the current criteria are kept.
        """
        self._criteria = self._criteria.with_changes(**changes)
        logger.debug("Criteria updated: %s", self._criteria)
        return self._criteria

    def reset_criteria(self) -> FilterCriteria:
        self._criteria = FilterCriteria()
        return self._criteria

    def visible_products(self) -> list[Product]:
        return self._engine.derive(
            self.catalog.products, self.ratings.ratings, self._criteria
        )

    def view(self) -> FeedView:
        return FeedView(
            products=self.visible_products(),
            total_in_catalog=len(self.catalog.products),
            criteria=self._criteria,
            banners=list(self.catalog.banners),
            categories=self.catalog.category_names,
            unread_count=self.notifications.unread_count,
            loading=self.catalog.loading,
        )

    # ── Notifications ────────────────────────────────────

    def follow_identity(self, source: IdentitySource) -> None:
        self.notifications.bind(source)

    async def set_identity(self, identity: str | None) -> None:
        await self.notifications.set_identity(identity)

    async def aclose(self) -> None:
        await self.notifications.aclose()

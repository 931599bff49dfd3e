# src/services/catalog_sync.py

"""One-shot catalog retrieval and promotional banner derivation."""

import asyncio
import logging
from collections.abc import Sequence

from src.config.settings import Settings
from src.filters.product_validator import ProductValidator
from src.models.errors import CatalogFetchError
from src.models.product import Banner, Category, Product
from src.storage.document_store import DocumentStore, Ordering

logger = logging.getLogger("gearzone.catalog")

_NEWEST_FIRST = Ordering("createdAt", descending=True)


def build_banners(products: Sequence[Product]) -> list[Banner]:
    """Derive promotional banners from an already-ordered product list.

    Takes up to ``BANNER_COUNT`` featured products, falling back to the
    first products of the list when none is featured.
    """
    count = Settings.BANNER_COUNT
    selected = [p for p in products if p.featured][:count]
    if not selected:
        selected = list(products[:count])

    banners: list[Banner] = []
    for product in selected:
        subtitle = (
            Settings.BANNER_DISCOUNT_SUBTITLE
            if product.price > Settings.BANNER_DISCOUNT_THRESHOLD
            else Settings.BANNER_DEFAULT_SUBTITLE
        )
        banners.append(
            Banner(
                id=f"banner-{product.id}",
                product_id=product.id,
                image=product.primary_image
                or Settings.BANNER_PLACEHOLDER_IMAGE,
                title=product.name,
                subtitle=subtitle,
            )
        )
    return banners


class CatalogSync:
    """Owns the in-memory catalog: products, categories and banners.

    Every successful load replaces all three wholesale; a failed load
    leaves the previous catalog in place.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self.products: list[Product] = []
        self.categories: list[Category] = []
        self.banners: list[Banner] = []
        self.loading: bool = False
        self.dropped_count: int = 0

    async def load_catalog(
        self, page_limit: int | None = None,
    ) -> list[Product]:
        """Fetch products and categories and replace the catalog.

        Products are ordered newest first and capped at *page_limit*
        (default ``Settings.PAGE_LIMIT``); categories are ordered the
        same way and uncapped.

        Raises:
            CatalogFetchError: either query failed.
        """
        limit = Settings.PAGE_LIMIT if page_limit is None else page_limit
        self.loading = True
        try:
            async with asyncio.TaskGroup() as tg:
                products_task = tg.create_task(
                    self._store.query(
                        "products", order_by=_NEWEST_FIRST, limit=limit
                    )
                )
                categories_task = tg.create_task(
                    self._store.query(
                        "categories", order_by=_NEWEST_FIRST
                    )
                )
        except ExceptionGroup as group:
            exc = group.exceptions[0]
            logger.error(
                "Catalog fetch failed (page_limit=%d): %s",
                limit,
                exc,
                exc_info=True,
            )
            raise CatalogFetchError(
                f"Failed to load catalog: {exc}"
            ) from exc
        finally:
            self.loading = False

        products, dropped = ProductValidator.validate(
            products_task.result()
        )
        category_records = categories_task.result()
        self.products = products
        self.categories = ProductValidator.validate_categories(
            category_records
        )
        self.banners = build_banners(products)
        self.dropped_count = dropped

        logger.info(
            "Catalog loaded: %d products, %d categories, %d banners",
            len(self.products),
            len(self.categories),
            len(self.banners),
        )
        return self.products

    async def refresh(self, page_limit: int | None = None) -> list[Product]:
        """Reload the catalog from scratch (no merge, no diffing)."""
        return await self.load_catalog(page_limit)

    @property
    def category_names(self) -> list[str]:
        """Category names prefixed with the "All" sentinel."""
        return [Settings.ALL_CATEGORIES] + [c.name for c in self.categories]

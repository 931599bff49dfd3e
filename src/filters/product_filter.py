# src/filters/product_filter.py

"""Filter stages applied to the catalog before sorting."""

from src.config.settings import Settings
from src.models.product import Product
from src.models.rating import RatingMap, average_for


class ProductFilter:
    """Individual filter stages.  Each returns a new list, input untouched.

    A stage whose criterion is at its neutral value returns its input
    unchanged (as a copy), so stages can be chained unconditionally.
    """

    @staticmethod
    def by_category(
        products: list[Product], category: str,
    ) -> list[Product]:
        """Keep products in *category*; the "All" sentinel keeps all."""
        if category == Settings.ALL_CATEGORIES:
            return list(products)
        return [p for p in products if p.category == category]

    @staticmethod
    def by_search(
        products: list[Product], query: str,
    ) -> list[Product]:
        """Case-insensitive substring match on name, brand, category
        or description.  An empty query keeps all.
        """
        needle = query.lower()
        if not needle:
            return list(products)
        return [
            p
            for p in products
            if any(
                needle in field.lower()
                for field in (p.name, p.brand, p.category, p.description)
            )
        ]

    @staticmethod
    def by_price(
        products: list[Product], price_range: tuple[float, float],
    ) -> list[Product]:
        """Keep products priced inside *price_range*, bounds included."""
        low, high = price_range
        return [p for p in products if low <= p.price <= high]

    @staticmethod
    def by_min_rating(
        products: list[Product], ratings: RatingMap, min_rating: float,
    ) -> list[Product]:
        """Keep products whose average rating reaches *min_rating*.

        Unrated products count as 0; a minimum of 0 keeps all.
        """
        if min_rating <= 0:
            return list(products)
        return [
            p for p in products
            if average_for(ratings, p.id) >= min_rating
        ]

    @staticmethod
    def by_stock(
        products: list[Product], in_stock_only: bool,
    ) -> list[Product]:
        if not in_stock_only:
            return list(products)
        return [p for p in products if p.stock > 0]

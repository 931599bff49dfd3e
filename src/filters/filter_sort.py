# src/filters/filter_sort.py

"""Pure derivation of the browsable product view.

``derive_view(products, ratings, criteria)`` is deterministic and has no
side effects; the output is always a subset, by identity, of *products*.
:class:`FilterSortEngine` memoises the last derivation so the owner can
call it on every keystroke without recomputing an unchanged view.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from src.filters.product_filter import ProductFilter
from src.models.criteria import FilterCriteria
from src.models.product import Product
from src.models.rating import RatingMap, average_for
from src.models.timestamps import to_epoch_millis

logger = logging.getLogger("gearzone.filters")

SortKey = Callable[[Product], Any]


def _sort_keys(ratings: RatingMap) -> dict[str, SortKey]:
    return {
        "price-low": lambda p: p.price,
        "price-high": lambda p: -p.price,
        "rating": lambda p: -average_for(ratings, p.id),
        "newest": lambda p: -to_epoch_millis(p.created_at),
        "featured": lambda p: (
            not p.featured,
            -to_epoch_millis(p.created_at),
        ),
    }


def sort_products(
    products: Sequence[Product], ratings: RatingMap, sort_by: str,
) -> list[Product]:
    """Order *products* by *sort_by*.

    ``sorted`` is stable, so equal keys keep their input order.
    Unknown options fall back to ``featured``.
    """
    keys = _sort_keys(ratings)
    key = keys.get(sort_by, keys["featured"])
    return sorted(products, key=key)


def derive_view(
    products: Sequence[Product],
    ratings: RatingMap,
    criteria: FilterCriteria,
) -> list[Product]:
    """Filter then sort *products* according to *criteria*."""
    view = ProductFilter.by_category(list(products), criteria.category)
    view = ProductFilter.by_search(view, criteria.search_query)
    view = ProductFilter.by_price(view, criteria.price_range)
    view = ProductFilter.by_min_rating(view, ratings, criteria.min_rating)
    view = ProductFilter.by_stock(view, criteria.in_stock_only)
    return sort_products(view, ratings, criteria.sort_by)


class FilterSortEngine:
    """Memoised :func:`derive_view`.

    The catalog and the rating map are compared by reference (both are
    replaced wholesale, never mutated in place); criteria by value.
    """

    def __init__(self) -> None:
        self._key: tuple[int, int, FilterCriteria] | None = None
        self._inputs: tuple[object, object] | None = None
        self._result: list[Product] = []
        self.computations = 0

    def derive(
        self,
        products: Sequence[Product],
        ratings: RatingMap,
        criteria: FilterCriteria,
    ) -> list[Product]:
        """Return the ordered view, recomputing only on input change."""
        key = (id(products), id(ratings), criteria)
        if (
            self._inputs is not None
            and self._key == key
            and self._inputs[0] is products
            and self._inputs[1] is ratings
        ):
            return list(self._result)

        self._result = derive_view(products, ratings, criteria)
        self._key = key
        # Hold the inputs so their ids cannot be recycled
        self._inputs = (products, ratings)
        self.computations += 1
        logger.debug(
            "Derived view: %d of %d products (sort=%s)",
            len(self._result),
            len(products),
            criteria.sort_by,
        )
        return list(self._result)

    def invalidate(self) -> None:
        self._key = None
        self._inputs = None

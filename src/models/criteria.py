# src/models/criteria.py

"""Filter and sort criteria owned by the browsing layer."""

import math
from dataclasses import dataclass, replace
from typing import Any

from src.config.settings import Settings
from src.models.errors import ValidationError


@dataclass(frozen=True)
class FilterCriteria:
    """Multi-criteria filter state.  Hashable, so it can key a memo."""

    category: str = Settings.ALL_CATEGORIES
    search_query: str = ""
    price_range: tuple[float, float] = Settings.DEFAULT_PRICE_RANGE
    min_rating: float = 0.0
    in_stock_only: bool = False
    sort_by: str = Settings.DEFAULT_SORT

    def validate(self) -> "FilterCriteria":
        """Raise :class:`ValidationError` on inconsistent bounds.

        Returns ``self`` so calls can be chained.
        """
        low, high = self.price_range
        for bound in (low, high):
            if isinstance(bound, bool) or not isinstance(
                bound, (int, float)
            ) or math.isnan(bound):
                msg = f"price bound {bound!r} is not a number"
                raise ValidationError(msg)
        if low < 0:
            msg = f"price minimum {low} is negative"
            raise ValidationError(msg)
        if low > high:
            msg = f"price minimum {low} exceeds maximum {high}"
            raise ValidationError(msg)
        if not 0 <= self.min_rating <= Settings.MAX_RATING:
            msg = (
                f"minimum rating {self.min_rating} outside "
                f"[0, {Settings.MAX_RATING}]"
            )
            raise ValidationError(msg)
        if self.sort_by not in Settings.SORT_OPTIONS:
            msg = f"unknown sort option {self.sort_by!r}"
            raise ValidationError(msg)
        return self

    def with_changes(self, **changes: Any) -> "FilterCriteria":
        """Return a validated copy with *changes* applied."""
        if "price_range" in changes:
            changes["price_range"] = tuple(changes["price_range"])
        return replace(self, **changes).validate()

    @property
    def is_all_categories(self) -> bool:
        return self.category == Settings.ALL_CATEGORIES

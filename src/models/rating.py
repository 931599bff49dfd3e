# src/models/rating.py

"""Derived per-product rating aggregate."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RatingAggregate:
    """Average rating and review count for one product."""

    average_rating: float = 0.0
    review_count: int = 0

    @classmethod
    def from_reviews(
        cls, reviews: Iterable[Mapping[str, Any]],
    ) -> "RatingAggregate":
        """Reduce review records to their mean rating.

        A review without a ``rating`` counts as 0 and still counts
        toward the denominator.
        """
        total = 0.0
        count = 0
        for review in reviews:
            total += float(review.get("rating") or 0)
            count += 1
        if count == 0:
            return NO_RATING
        return cls(average_rating=total / count, review_count=count)


NO_RATING = RatingAggregate()

RatingMap = Mapping[str, RatingAggregate]


def average_for(ratings: RatingMap, product_id: str) -> float:
    """Look up a product's average, treating absence as 0."""
    return ratings.get(product_id, NO_RATING).average_rating

# src/services/rating_aggregator.py

"""Concurrent per-product review aggregation."""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType

from src.config.settings import Settings
from src.models.errors import AggregationError
from src.models.product import Product
from src.models.rating import NO_RATING, RatingAggregate
from src.storage.document_store import DocumentStore, FieldFilter

logger = logging.getLogger("gearzone.ratings")


class RatingAggregator:
    """Fans out one review query per product and publishes the averages.

    Publication is all-or-nothing: when any sub-query fails the whole
    attempt is abandoned and the previously published map stays in
    place.  The failure is logged, never raised.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._ratings: Mapping[str, RatingAggregate] = MappingProxyType({})
        self._latest_request = 0

    @property
    def ratings(self) -> Mapping[str, RatingAggregate]:
        """Read-only view of the last published rating map."""
        return self._ratings

    def rating_for(self, product_id: str) -> RatingAggregate:
        return self._ratings.get(product_id, NO_RATING)

    async def _aggregate_one(self, product_id: str) -> RatingAggregate:
        async with asyncio.timeout(Settings.REVIEW_QUERY_TIMEOUT):
            reviews = await self._store.query(
                "reviews",
                [FieldFilter("productId", "==", product_id)],
            )
        return RatingAggregate.from_reviews(reviews)

    async def aggregate_ratings(
        self, products: Sequence[Product],
    ) -> Mapping[str, RatingAggregate]:
        """Recompute the rating map for *products*.

        Every query runs concurrently inside a task group; the first
        failure cancels the rest.  Returns the map that is current
        after the call: the new one on success, the previous one on
        failure or when a newer aggregation superseded this one.
        """
        self._latest_request += 1
        request = self._latest_request

        product_ids = list(dict.fromkeys(p.id for p in products))
        tasks: dict[str, asyncio.Task[RatingAggregate]] = {}
        try:
            async with asyncio.TaskGroup() as tg:
                for product_id in product_ids:
                    tasks[product_id] = tg.create_task(
                        self._aggregate_one(product_id)
                    )
        except ExceptionGroup as group:
            error = AggregationError(
                len(group.exceptions), len(product_ids)
            )
            logger.error(
                "Rating aggregation abandoned, keeping %d previous "
                "ratings: %s",
                len(self._ratings),
                error,
                exc_info=group,
            )
            return self._ratings

        if request != self._latest_request:
            logger.debug(
                "Discarding superseded rating aggregation #%d", request
            )
            return self._ratings

        self._ratings = MappingProxyType(
            {pid: task.result() for pid, task in tasks.items()}
        )
        logger.info(
            "Aggregated ratings for %d products", len(self._ratings)
        )
        return self._ratings

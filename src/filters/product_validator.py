# src/filters/product_validator.py

"""Record validation: drop malformed catalog records before use."""

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from src.models.product import Category, Product

logger = logging.getLogger("gearzone.filters")


class ProductValidator:
    """Parse store records and drop those that cannot be trusted."""

    @staticmethod
    def validate(
        records: Iterable[dict[str, Any]],
    ) -> tuple[list[Product], int]:
        """Parse records into products, dropping invalid ones.

        A record is dropped when it has no id or name, a non-numeric
        price or stock, or a negative price or stock.  An original
        price below the selling price is cleared rather than dropped.

        Returns the valid products (input order kept) and the count
        of dropped records.
        """
        valid: list[Product] = []
        dropped = 0

        for record in records:
            try:
                product = Product.from_record(record)
            except (KeyError, TypeError, ValueError) as exc:
                logger.debug(
                    "Dropped unparseable product record %r: %s",
                    record.get("id"),
                    exc,
                )
                dropped += 1
                continue
            if product.price < 0 or product.stock < 0:
                logger.debug(
                    "Dropped product with negative price/stock "
                    "(id=%s, price=%s, stock=%s)",
                    product.id,
                    product.price,
                    product.stock,
                )
                dropped += 1
                continue
            if (
                product.original_price is not None
                and product.original_price < product.price
            ):
                # Not a discount; show the product without one
                product = replace(product, original_price=None)
            valid.append(product)

        if dropped:
            logger.info(
                "Validation dropped %d invalid product records",
                dropped,
            )

        return valid, dropped

    @staticmethod
    def validate_categories(
        records: Iterable[dict[str, Any]],
    ) -> list[Category]:
        """Parse category records, skipping ones missing id or name."""
        categories: list[Category] = []
        for record in records:
            try:
                categories.append(Category.from_record(record))
            except KeyError as exc:
                logger.debug(
                    "Dropped category record without %s", exc
                )
        return categories

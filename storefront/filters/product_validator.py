# storefront/filters/product_validator.py

"""Product validation: parse raw rows, drop the unusable ones."""

import logging
from typing import Any

from storefront.models.product import Product

logger = logging.getLogger("storefront.filters")


class ProductValidator:
    """Turn raw API rows into products, dropping invalid entries."""

    @staticmethod
    def validate(
        rows: list[Any],
    ) -> tuple[list[Product], int]:
        """Parse rows and drop non-objects and rows without an id.

        Returns the valid products and the count of dropped rows.
        """
        valid: list[Product] = []
        dropped = 0

        for row in rows:
            if not isinstance(row, dict):
                logger.debug(
                    "Dropped non-object product row (%s)",
                    type(row).__name__,
                )
                dropped += 1
                continue
            try:
                valid.append(Product.from_api(row))
            except ValueError as exc:
                logger.debug("Dropped product row: %s", exc)
                dropped += 1

        if dropped:
            logger.info(
                "Validation dropped %d invalid product rows",
                dropped,
            )

        return valid, dropped

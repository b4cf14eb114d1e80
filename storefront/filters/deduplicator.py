# storefront/filters/deduplicator.py

"""Product deduplication across catalog pages."""

import logging

from storefront.models.product import Product

logger = logging.getLogger("storefront.filters")


class ProductDeduplicator:
    """Remove products whose id already appeared earlier."""

    @staticmethod
    def deduplicate(
        products: list[Product],
    ) -> tuple[list[Product], int]:
        """Keep the first occurrence of every product id.

        Returns the deduplicated list and the count of removed dupes.
        """
        if not products:
            return [], 0

        seen: set[int] = set()
        kept: list[Product] = []
        removed = 0

        for product in products:
            if product.id in seen:
                removed += 1
                continue
            seen.add(product.id)
            kept.append(product)

        if removed:
            logger.info(
                "Deduplication removed %d duplicate products",
                removed,
            )

        return kept, removed

    @staticmethod
    def append(
        existing: list[Product],
        incoming: list[Product],
    ) -> tuple[list[Product], int]:
        """Append a new page, skipping ids already on screen.

        Servers may repeat boundary items across pages; the copy already
        shown keeps its position.
        """
        return ProductDeduplicator.deduplicate(
            list(existing) + list(incoming)
        )

# storefront/filters/sort_comparator.py

"""Deterministic client-side product ordering.

Every order is total: ties on the sort field fall back to ascending
``id``, and products whose sort field is missing or unparseable go
last regardless of direction. The result is therefore identical for
any input permutation.
"""

import functools
import locale
from typing import Any

from storefront.models.criteria import SortKey
from storefront.models.product import Product


def _field(product: Product, sort_key: SortKey) -> Any:
    if sort_key in (SortKey.PRICE_ASC, SortKey.PRICE_DESC):
        return product.price
    if sort_key is SortKey.RATING_DESC:
        return product.rating
    if sort_key in (SortKey.NEWEST, SortKey.OLDEST):
        return product.created_at
    return product.name.casefold() if product.name else None


def _descending(sort_key: SortKey) -> bool:
    return sort_key in (
        SortKey.PRICE_DESC,
        SortKey.RATING_DESC,
        SortKey.NEWEST,
    )


def _cmp_values(a: Any, b: Any, sort_key: SortKey) -> int:
    if sort_key is SortKey.TITLE:
        return locale.strcoll(a, b)
    return (a > b) - (a < b)


class SortComparator:
    """Total-order comparator over products, keyed by SortKey."""

    @staticmethod
    def compare(a: Product, b: Product, sort_key: SortKey) -> int:
        """Return <0, 0 or >0 like a classic ``cmp`` function."""
        va = _field(a, sort_key)
        vb = _field(b, sort_key)

        if va is None and vb is not None:
            return 1
        if vb is None and va is not None:
            return -1

        if va is not None and vb is not None:
            result = _cmp_values(va, vb, sort_key)
            if result:
                return -result if _descending(sort_key) else result

        return (a.id > b.id) - (a.id < b.id)

    @staticmethod
    def sort(
        products: list[Product],
        sort_key: SortKey | None,
    ) -> list[Product]:
        """Return a new list ordered by ``sort_key`` (no-op for None)."""
        if sort_key is None:
            return list(products)
        return sorted(
            products,
            key=functools.cmp_to_key(
                lambda a, b: SortComparator.compare(a, b, sort_key)
            ),
        )

# storefront/filters/catalog_views.py

"""Derived tabs over an already fetched product list."""

from enum import Enum

from storefront.config.settings import Settings
from storefront.filters.sort_comparator import SortComparator
from storefront.models.criteria import SortKey
from storefront.models.product import Product


class CatalogView(Enum):
    """Tabs shown on category listing screens."""

    ALL = "all"
    FEATURED = "featured"
    NEW = "new"
    DISCOUNTED = "discounted"


def featured(products: list[Product]) -> list[Product]:
    return [p for p in products if p.is_featured]


def new_arrivals(
    products: list[Product],
    limit: int | None = None,
) -> list[Product]:
    """Most recently created products first, capped at ``limit``."""
    cap = Settings.NEW_ARRIVALS_LIMIT if limit is None else limit
    return SortComparator.sort(products, SortKey.NEWEST)[:cap]


def discounted(products: list[Product]) -> list[Product]:
    """Products currently selling below their original price."""
    return [p for p in products if p.discount_percent > 0]


def apply_view(
    products: list[Product],
    view: CatalogView,
) -> list[Product]:
    """Select the products shown for ``view``; never mutates input."""
    if view is CatalogView.FEATURED:
        return featured(products)
    if view is CatalogView.NEW:
        return new_arrivals(products)
    if view is CatalogView.DISCOUNTED:
        return discounted(products)
    return list(products)

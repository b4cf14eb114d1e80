# storefront/filters/predicate_engine.py

"""Map user-facing filter state onto canonical catalog request params."""

import json
import logging
from decimal import Decimal

from storefront.models.criteria import ALL_CATEGORIES, FilterCriteria
from storefront.models.product import Product

logger = logging.getLogger("storefront.filters")


def normalize_search(term: str) -> str:
    """Trim, collapse inner whitespace and lower-case search text."""
    return " ".join(term.split()).lower()


def _format_decimal(value: Decimal) -> str:
    """Render ``5000.00`` as ``5000`` and ``12.50`` as ``12.5``."""
    normalized = value.normalize()
    integral = normalized.to_integral_value()
    if normalized == integral:
        return format(integral, "f")
    return format(normalized, "f")


class FilterPredicateEngine:
    """Build request params and local predicates from FilterCriteria.

    Every unset field is omitted rather than sent as a sentinel, so the
    request means "no constraint". Output is independent of call order
    and key insertion order, which makes it usable as a cache key.
    """

    @staticmethod
    def build_params(criteria: FilterCriteria) -> dict[str, str]:
        """Return the canonical query parameters for ``criteria``."""
        params: dict[str, str] = {}

        if criteria.category not in (ALL_CATEGORIES, None, ""):
            params["category"] = str(criteria.category)

        if criteria.is_featured is not None:
            params["is_featured"] = (
                "true" if criteria.is_featured else "false"
            )

        price = criteria.price_range
        if price.min is not None:
            params["min_price"] = _format_decimal(price.min)
        if price.max is not None:
            params["max_price"] = _format_decimal(price.max)

        search = normalize_search(criteria.search_term)
        if search:
            params["search"] = search

        return dict(sorted(params.items()))

    @staticmethod
    def cache_key(params: dict[str, str], page: int = 1) -> str:
        """Canonical string identifying one page of one query."""
        return "filteredProducts_" + json.dumps(
            {**params, "page": page}, sort_keys=True
        )

    @staticmethod
    def matches(product: Product, criteria: FilterCriteria) -> bool:
        """Evaluate ``criteria`` locally against a fetched product."""
        if criteria.category not in (ALL_CATEGORIES, None, ""):
            if str(product.category) != str(criteria.category):
                return False

        if (
            criteria.is_featured is not None
            and product.is_featured != criteria.is_featured
        ):
            return False

        price = criteria.price_range
        if not price.is_unbounded:
            if product.price is None:
                return False
            if price.min is not None and product.price < price.min:
                return False
            if price.max is not None and product.price > price.max:
                return False

        search = normalize_search(criteria.search_term)
        if search:
            blob = " ".join(
                [product.name, product.slug, product.description]
            ).lower()
            if search not in blob:
                return False

        return True

    @staticmethod
    def filter_products(
        products: list[Product],
        criteria: FilterCriteria,
    ) -> tuple[list[Product], int]:
        """Re-filter an already fetched list without a refetch.

        Returns the kept products and the count of excluded ones.
        """
        kept = [
            p for p in products
            if FilterPredicateEngine.matches(p, criteria)
        ]
        excluded = len(products) - len(kept)
        if excluded:
            logger.info(
                "Local filter excluded %d of %d products",
                excluded,
                len(products),
            )
        return kept, excluded

# storefront/gateway/envelope.py

"""Normalize the two product-list response shapes into one page.

``/market/products/`` answers either with a bare JSON array or with a
paginated ``{count, next, previous, results}`` envelope depending on
server configuration. Everything above the gateway sees only
:class:`~storefront.models.page.PageResult`.
"""

from typing import Any

from storefront.filters.product_validator import ProductValidator
from storefront.gateway.errors import MalformedResponse
from storefront.models.page import PageResult


def extract_rows(payload: Any) -> tuple[list[Any], int | None, bool]:
    """Return ``(rows, count, has_more)`` for either response shape.

    ``count`` is ``None`` for bare arrays, whose length is the count.
    """
    if isinstance(payload, list):
        return payload, None, False

    if isinstance(payload, dict) and isinstance(
        payload.get("results"), list
    ):
        count = payload.get("count")
        if count is not None and (
            isinstance(count, bool) or not isinstance(count, int)
        ):
            msg = f"Envelope count is not an integer: {count!r}"
            raise MalformedResponse(msg)
        return payload["results"], count, payload.get("next") is not None

    msg = (
        "Expected a product array or a paginated envelope, got "
        f"{type(payload).__name__}"
    )
    raise MalformedResponse(msg)


def normalize_page(payload: Any) -> PageResult:
    """Convert a raw product-list payload into a :class:`PageResult`."""
    rows, count, has_more = extract_rows(payload)
    products, _dropped = ProductValidator.validate(rows)
    total = count if count is not None else len(products)
    return PageResult(
        items=products,
        total_count=total,
        has_more=has_more,
    )

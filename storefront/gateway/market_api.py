# storefront/gateway/market_api.py

"""Typed wrappers over the ``/market/`` endpoints."""

import logging
from typing import Any

from storefront.config.settings import Settings
from storefront.gateway.envelope import extract_rows, normalize_page
from storefront.gateway.errors import MalformedResponse
from storefront.gateway.remote_gateway import RemoteGateway
from storefront.models.category import Category
from storefront.models.mutation import WishlistEntry
from storefront.models.page import PageResult
from storefront.models.product import parse_timestamp

logger = logging.getLogger("storefront.gateway")


class MarketApi:
    """Marketplace endpoints on top of an injected RemoteGateway."""

    def __init__(self, gateway: RemoteGateway) -> None:
        self.gateway = gateway
        self.settings = Settings()

    async def list_products(
        self,
        params: dict[str, str],
        page: int = 1,
    ) -> PageResult:
        """Fetch one page of products for canonical filter params."""
        query = dict(params)
        if page > 1:
            query["page"] = str(page)
        payload = await self.gateway.get(
            self.settings.PRODUCTS_PATH, params=query or None
        )
        return normalize_page(payload)

    async def list_categories(self) -> list[Category]:
        payload = await self.gateway.get(self.settings.CATEGORIES_PATH)
        rows, _count, _more = extract_rows(payload)
        categories: list[Category] = []
        for row in rows:
            try:
                categories.append(Category.from_api(row))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                msg = f"Unusable category row: {row!r:.80}"
                raise MalformedResponse(msg) from exc
        return categories

    async def add_cart_item(
        self, product_id: int, quantity: int,
    ) -> dict[str, Any]:
        """POST an add-to-cart; returns the decoded body (may be empty)."""
        body = await self.gateway.post(
            self.settings.CART_ADD_PATH,
            {"product_id": product_id, "quantity": quantity},
        )
        return body if isinstance(body, dict) else {}

    async def toggle_wishlist(self, product_id: int) -> dict[str, Any]:
        body = await self.gateway.post(
            self.settings.WISHLIST_TOGGLE_PATH,
            {"product_id": product_id},
        )
        return body if isinstance(body, dict) else {}

    async def wishlist_status(self, product_id: int) -> bool:
        """Membership check: a non-empty array means wishlisted."""
        payload = await self.gateway.get(
            f"{self.settings.WISHLIST_PATH}{product_id}/"
        )
        rows, _count, _more = extract_rows(payload)
        return len(rows) > 0

    async def list_wishlist(self) -> list[WishlistEntry]:
        payload = await self.gateway.get(self.settings.WISHLIST_PATH)
        rows, _count, _more = extract_rows(payload)
        entries: list[WishlistEntry] = []
        for row in rows:
            product = row.get("product") if isinstance(row, dict) else None
            if not isinstance(product, int) or isinstance(product, bool):
                logger.debug("Skipping wishlist row %r", row)
                continue
            entries.append(
                WishlistEntry(
                    product_id=product,
                    is_wishlisted=True,
                    id=row.get("id"),
                    created_at=parse_timestamp(row.get("created_at")),
                )
            )
        return entries

# storefront/services/catalog_store.py

"""Owns the visible catalog result set for the active filter criteria.

Each fetch is tagged with a sequence number when it is dispatched.
Only the response carrying the latest number may touch the visible
:class:`PageState`; anything older is returned with ``applied=False``
and otherwise ignored. This keeps a slow "load more" for criteria A
from landing on top of criteria B's freshly loaded first page.
"""

import dataclasses
import logging
from typing import Any

from storefront.filters.deduplicator import ProductDeduplicator
from storefront.filters.predicate_engine import FilterPredicateEngine
from storefront.filters.sort_comparator import SortComparator
from storefront.gateway.errors import (
    MalformedResponse,
    StorefrontError,
    ValidationFailure,
)
from storefront.gateway.market_api import MarketApi
from storefront.models.criteria import FilterCriteria
from storefront.models.page import (
    Error,
    Idle,
    Loading,
    PageResult,
    PageState,
    RequestState,
    Success,
)
from storefront.models.product import Product
from storefront.storage.query_cache import QueryCache

logger = logging.getLogger("storefront.catalog")


class CatalogStore:
    """Fetches, merges and guards paged catalog results."""

    def __init__(
        self,
        api: MarketApi,
        cache: QueryCache | None = None,
        server_sorts: bool = False,
    ) -> None:
        self.api = api
        self.cache = cache
        self.server_sorts = server_sorts
        self.state = PageState()
        self.request_state: RequestState = Idle()
        self.criteria: FilterCriteria | None = None
        self._active_params: dict[str, str] | None = None
        self._state_params: dict[str, str] | None = None
        self._seq = 0
        self._disposed = False

    # ── Properties ───────────────────────────────────────

    @property
    def sequence(self) -> int:
        """Number of the most recently dispatched fetch."""
        return self._seq

    @property
    def items(self) -> list[Product]:
        return list(self.state.items)

    @property
    def visible_items(self) -> list[Product]:
        """Items in display order for the active sort key."""
        if self.server_sorts or self.criteria is None:
            return list(self.state.items)
        return SortComparator.sort(
            self.state.items, self.criteria.sort_key
        )

    # ── Private helpers ──────────────────────────────────

    def _is_current(self, seq: int) -> bool:
        return not self._disposed and seq == self._seq

    def _record_failure(
        self,
        seq: int,
        page_number: int,
        exc: StorefrontError,
    ) -> bool:
        """Set the Error state if ``seq`` is current; False when stale."""
        if not self._is_current(seq):
            logger.debug(
                "Discarding failure of superseded fetch #%d: %s",
                seq,
                exc.message,
            )
            return False
        self.request_state = Error(exc.message, exc.kind)
        logger.warning(
            "Catalog fetch #%d failed (page %d): %s",
            seq,
            page_number,
            exc.message,
        )
        return True

    async def _load(
        self,
        params: dict[str, str],
        page_number: int,
        use_cache: bool,
    ) -> PageResult:
        """Serve from cache when allowed, else hit the gateway."""
        if use_cache and self.cache is not None:
            cached = self.cache.get(params, page_number)
            if cached is not None:
                return cached

        result = await self.api.list_products(params, page_number)
        if self.cache is not None:
            self.cache.store(params, page_number, result)
        return result

    def _apply(
        self,
        params: dict[str, str],
        page_number: int,
        result: PageResult,
    ) -> None:
        if page_number == 1:
            items, removed = ProductDeduplicator.deduplicate(
                result.items
            )
        else:
            items, removed = ProductDeduplicator.append(
                self.state.items, result.items
            )
        if removed:
            logger.debug(
                "Page %d repeated %d already shown products",
                page_number,
                removed,
            )
        self.state = PageState(
            items=items,
            page=page_number,
            total_count=result.total_count,
            has_more=result.has_more,
        )
        self._state_params = params
        self.request_state = Success(result)

    # ── Fetching ─────────────────────────────────────────

    async def fetch_page(
        self,
        criteria: FilterCriteria,
        page_number: int = 1,
        use_cache: bool = True,
    ) -> PageResult:
        """Fetch one page for ``criteria`` and merge it if still current.

        Page 1 replaces the visible items; later pages append, but only
        while ``criteria`` is still the one on screen. Failures of the
        current fetch are recorded in :attr:`request_state` and
        re-raised with the last good items left in place.
        """
        if page_number < 1:
            msg = f"Page numbers start at 1, got {page_number}"
            raise ValidationFailure(msg)
        if self._disposed:
            logger.debug("Ignoring fetch on disposed catalog store")
            return PageResult(applied=False)

        params = FilterPredicateEngine.build_params(criteria)

        if page_number > 1 and not (
            params == self._active_params == self._state_params
        ):
            logger.info(
                "Ignoring page %d for inactive criteria %s",
                page_number,
                params,
            )
            return PageResult(applied=False)

        self._seq += 1
        seq = self._seq
        self.criteria = criteria
        self._active_params = params
        self.request_state = Loading(page=page_number)
        logger.debug(
            "Fetch #%d: page %d params=%s", seq, page_number, params
        )

        try:
            result = await self._load(params, page_number, use_cache)
        except StorefrontError as exc:
            if not self._record_failure(seq, page_number, exc):
                return PageResult(applied=False)
            raise
        except Exception as exc:
            logger.error(
                "Catalog fetch #%d raised unexpectedly",
                seq,
                exc_info=True,
            )
            wrapped = MalformedResponse(
                f"Unusable catalog response: {exc}"
            )
            if not self._record_failure(seq, page_number, wrapped):
                return PageResult(applied=False)
            raise wrapped from exc

        if not self._is_current(seq):
            logger.debug(
                "Discarding stale response #%d (latest is #%d)",
                seq,
                self._seq,
            )
            result.applied = False
            return result

        self._apply(params, page_number, result)
        logger.info(
            "Fetch #%d applied: %d items on screen of %d",
            seq,
            len(self.state.items),
            self.state.total_count,
        )
        return result

    async def select(self, criteria: FilterCriteria) -> PageResult:
        """Make ``criteria`` active, refetching only if params changed.

        A change of sort key alone (or of whitespace in the search)
        re-orders the items already on screen.
        """
        params = FilterPredicateEngine.build_params(criteria)
        if (
            not self._disposed
            and params == self._active_params == self._state_params
            and not isinstance(self.request_state, Loading)
        ):
            self.criteria = criteria
            logger.debug("Criteria change needs no refetch: %s", params)
            return PageResult(
                items=self.visible_items,
                total_count=self.state.total_count,
                has_more=self.state.has_more,
            )
        return await self.fetch_page(criteria, 1)

    async def load_more(self) -> PageResult | None:
        """Fetch the next page of the active criteria, if any."""
        if (
            self.criteria is None
            or not self.state.has_more
            or isinstance(self.request_state, Loading)
        ):
            return None
        return await self.fetch_page(self.criteria, self.state.page + 1)

    async def refresh(self) -> PageResult | None:
        """Refetch page 1 of the active criteria, bypassing the cache."""
        if self.criteria is None:
            return None
        if self.cache is not None and self._active_params is not None:
            self.cache.invalidate(self._active_params)
        return await self.fetch_page(self.criteria, 1, use_cache=False)

    # ── Local updates ────────────────────────────────────

    def patch_product(self, product_id: int, **changes: Any) -> bool:
        """Apply a mutation-driven change to a product on screen.

        Returns ``False`` when the product is no longer shown.
        """
        if self._disposed:
            return False
        for idx, product in enumerate(self.state.items):
            if product.id == product_id:
                self.state.items[idx] = dataclasses.replace(
                    product, **changes
                )
                return True
        return False

    def filtered(self, criteria: FilterCriteria) -> list[Product]:
        """Re-filter the items on screen locally, without a fetch."""
        kept, _excluded = FilterPredicateEngine.filter_products(
            self.state.items, criteria
        )
        return SortComparator.sort(kept, criteria.sort_key)

    def dispose(self) -> None:
        """Detach from the screen; late responses become no-ops."""
        self._disposed = True
        logger.debug("Catalog store disposed at fetch #%d", self._seq)

# storefront/services/mutation_queue.py

"""Optimistic cart/wishlist mutations with per-key serialization."""

import asyncio
import logging
from typing import Any

from storefront.gateway.errors import ErrorKind, StorefrontError
from storefront.gateway.market_api import MarketApi
from storefront.models.mutation import (
    AddToCart,
    CartLine,
    Mutation,
    MutationRequest,
    MutationState,
    MutationType,
    Outcome,
    OutcomeStatus,
    ToggleWishlist,
)
from storefront.services.reconciler import OptimisticStateReconciler

logger = logging.getLogger("storefront.mutations")

MutationKey = tuple[int, MutationType]

_MESSAGES: dict[MutationType, tuple[str, str]] = {
    MutationType.ADD_TO_CART: (
        "Item added to cart successfully",
        "Failed to add item to cart",
    ),
    MutationType.TOGGLE_WISHLIST: (
        "Wishlist updated successfully",
        "Failed to update wishlist",
    ),
}


class ClientState:
    """Locally rendered cart lines and wishlist flags."""

    def __init__(self) -> None:
        self.wishlist: dict[int, bool] = {}
        self.cart: dict[int, CartLine] = {}

    def is_wishlisted(self, product_id: int) -> bool:
        return self.wishlist.get(product_id, False)

    def set_wishlisted(self, product_id: int, flag: bool) -> None:
        self.wishlist[product_id] = flag

    def cart_quantity(self, product_id: int) -> int:
        line = self.cart.get(product_id)
        return line.quantity if line else 0

    def set_cart_quantity(self, product_id: int, quantity: int) -> None:
        if quantity < 1:
            self.cart.pop(product_id, None)
        else:
            self.cart[product_id] = CartLine(product_id, quantity)

    @property
    def cart_badge(self) -> int:
        """Total units in the cart, as shown on the header badge."""
        return sum(line.quantity for line in self.cart.values())

    def tracks(self, product_id: int, kind: MutationType) -> bool:
        if kind is MutationType.TOGGLE_WISHLIST:
            return product_id in self.wishlist
        return product_id in self.cart

    def forget(self, product_id: int) -> None:
        """Drop everything known about a product (e.g. card unmounted)."""
        self.wishlist.pop(product_id, None)
        self.cart.pop(product_id, None)


def _resolved(outcome: Outcome) -> "asyncio.Future[Outcome]":
    future: asyncio.Future[Outcome] = (
        asyncio.get_running_loop().create_future()
    )
    future.set_result(outcome)
    return future


class MutationQueue:
    """Dispatches cart/wishlist mutations optimistically.

    At most one mutation per ``(product_id, type)`` is in flight. The
    optimistic change is written during :meth:`dispatch` itself, before
    the caller awaits anything; the returned future resolves once the
    server has confirmed (server value wins) or failed (rolled back).
    Outcomes are always returned, never raised.
    """

    def __init__(
        self,
        api: MarketApi,
        state: ClientState | None = None,
    ) -> None:
        self.api = api
        self.state = state if state is not None else ClientState()
        self._in_flight: dict[MutationKey, MutationRequest] = {}
        self._disposed = False

    # ── Introspection ────────────────────────────────────

    def state_of(
        self, product_id: int, kind: MutationType,
    ) -> MutationState:
        request = self._in_flight.get((product_id, kind))
        return request.state if request else MutationState.IDLE

    @property
    def pending_count(self) -> int:
        return len(self._in_flight)

    # ── Optimistic bookkeeping ───────────────────────────

    def _read(self, product_id: int, kind: MutationType) -> bool | int:
        if kind is MutationType.TOGGLE_WISHLIST:
            return self.state.is_wishlisted(product_id)
        return self.state.cart_quantity(product_id)

    def _write(
        self, product_id: int, kind: MutationType, value: bool | int,
    ) -> None:
        if kind is MutationType.TOGGLE_WISHLIST:
            self.state.set_wishlisted(product_id, bool(value))
        else:
            self.state.set_cart_quantity(product_id, int(value))

    def _validate(self, mutation: Mutation) -> str | None:
        """Client-side checks; returns a message when rejected."""
        if not isinstance(mutation, AddToCart):
            return None
        if mutation.quantity < 1:
            return "Quantity must be at least 1"
        if mutation.stock is not None:
            wanted = (
                self.state.cart_quantity(mutation.product_id)
                + mutation.quantity
            )
            if wanted > mutation.stock:
                return f"Only {mutation.stock} in stock"
        return None

    # ── Dispatch ─────────────────────────────────────────

    def dispatch(self, mutation: Mutation) -> "asyncio.Future[Outcome]":
        """Apply ``mutation`` optimistically and send it to the server.

        Must be called from a running event loop.
        """
        kind = mutation.type
        key: MutationKey = (mutation.product_id, kind)

        if self._disposed:
            return _resolved(
                Outcome(OutcomeStatus.FAILED, _MESSAGES[kind][1])
            )

        if key in self._in_flight:
            logger.info(
                "Rejected %s for product %d: already pending",
                kind.value,
                mutation.product_id,
            )
            return _resolved(
                Outcome(
                    OutcomeStatus.BUSY,
                    "A previous request for this product is still pending",
                    ErrorKind.BUSY,
                )
            )

        problem = self._validate(mutation)
        if problem is not None:
            logger.info(
                "Rejected %s for product %d: %s",
                kind.value,
                mutation.product_id,
                problem,
            )
            return _resolved(
                Outcome(
                    OutcomeStatus.FAILED, problem, ErrorKind.VALIDATION
                )
            )

        snapshot = self._read(mutation.product_id, kind)
        if isinstance(mutation, ToggleWishlist):
            guess: bool | int = not snapshot
            payload: dict[str, Any] = {"product_id": mutation.product_id}
        else:
            guess = int(snapshot) + mutation.quantity
            payload = {
                "product_id": mutation.product_id,
                "quantity": mutation.quantity,
            }
        self._write(mutation.product_id, kind, guess)

        request = MutationRequest(
            type=kind,
            target_id=mutation.product_id,
            payload=payload,
        )
        self._in_flight[key] = request
        logger.debug(
            "Dispatched %s for product %d (optimistic %r -> %r)",
            kind.value,
            mutation.product_id,
            snapshot,
            guess,
        )
        return asyncio.ensure_future(
            self._settle(key, request, snapshot, guess)
        )

    async def _send(self, request: MutationRequest) -> dict[str, Any]:
        if request.type is MutationType.TOGGLE_WISHLIST:
            return await self.api.toggle_wishlist(request.target_id)
        return await self.api.add_cart_item(
            request.target_id, request.payload["quantity"]
        )

    @staticmethod
    def _server_value(
        kind: MutationType, body: dict[str, Any],
    ) -> bool | int | None:
        """Authoritative value echoed by the server, if any."""
        if kind is MutationType.TOGGLE_WISHLIST:
            flag = body.get("is_wishlisted")
            return flag if isinstance(flag, bool) else None
        item = body.get("item")
        source = item if isinstance(item, dict) else body
        quantity = source.get("quantity")
        if isinstance(quantity, int) and not isinstance(quantity, bool):
            return quantity
        return None

    async def _settle(
        self,
        key: MutationKey,
        request: MutationRequest,
        snapshot: bool | int,
        guess: bool | int,
    ) -> Outcome:
        try:
            try:
                body = await self._send(request)
            except StorefrontError as exc:
                logger.warning(
                    "%s for product %d failed: %s",
                    request.type.value,
                    request.target_id,
                    exc.message,
                )
                return self._fail(request, snapshot, exc.kind)
            except Exception:
                logger.error(
                    "%s for product %d raised unexpectedly",
                    request.type.value,
                    request.target_id,
                    exc_info=True,
                )
                return self._fail(request, snapshot, None)

            if body.get("status") is False:
                message = str(body.get("message") or "")
                logger.warning(
                    "%s for product %d rejected by server: %s",
                    request.type.value,
                    request.target_id,
                    message,
                )
                return self._fail(
                    request, snapshot, ErrorKind.SERVER, message or None
                )

            truth = self._server_value(request.type, body)
            final = OptimisticStateReconciler.resolve(guess, truth)
            request.state = MutationState.CONFIRMED
            self._commit(request, final)
            return Outcome(
                OutcomeStatus.CONFIRMED,
                _MESSAGES[request.type][0],
                value=final,
            )
        finally:
            self._in_flight.pop(key, None)

    def _fail(
        self,
        request: MutationRequest,
        snapshot: bool | int,
        kind: ErrorKind | None,
        message: str | None = None,
    ) -> Outcome:
        request.state = MutationState.FAILED
        restored = OptimisticStateReconciler.rollback(snapshot)
        self._commit(request, restored)
        return Outcome(
            OutcomeStatus.FAILED,
            message or _MESSAGES[request.type][1],
            kind,
            value=restored,
        )

    def _commit(self, request: MutationRequest, value: bool | int) -> None:
        """Write the resolved value unless the target went away."""
        if self._disposed or not self.state.tracks(
            request.target_id, request.type
        ):
            logger.debug(
                "Dropping resolution for product %d: no longer tracked",
                request.target_id,
            )
            return
        self._write(request.target_id, request.type, value)

    # ── Server reads ─────────────────────────────────────

    async def sync_wishlist(self, product_id: int) -> bool | None:
        """Load one product's membership unless a toggle is pending.

        Returns the server's flag, or ``None`` when skipped. Read
        failures propagate to the caller.
        """
        key = (product_id, MutationType.TOGGLE_WISHLIST)
        if key in self._in_flight:
            return None
        flag = await self.api.wishlist_status(product_id)
        if not self._disposed and key not in self._in_flight:
            self.state.set_wishlisted(product_id, flag)
        return flag

    async def load_wishlist(self) -> set[int]:
        """Hydrate every wishlist flag from ``/market/wishlist/``."""
        entries = await self.api.list_wishlist()
        members = {e.product_id for e in entries}
        if self._disposed:
            return members
        known = set(self.state.wishlist) | members
        for product_id in known:
            key = (product_id, MutationType.TOGGLE_WISHLIST)
            if key not in self._in_flight:
                self.state.set_wishlisted(
                    product_id, product_id in members
                )
        return members

    def dispose(self) -> None:
        """Detach from the UI; pending resolutions stop writing state."""
        self._disposed = True

# tests/test_mutation_queue.py

"""Tests for optimistic cart/wishlist mutations."""

import asyncio
import unittest
from typing import Any

from storefront.gateway.errors import ErrorKind, NetworkFailure, ServerError
from storefront.gateway.market_api import MarketApi
from storefront.gateway.remote_gateway import RemoteGateway
from storefront.models.mutation import (
    AddToCart,
    MutationState,
    MutationType,
    OutcomeStatus,
    ToggleWishlist,
)
from storefront.services.mutation_queue import ClientState, MutationQueue


class _PendingGateway(RemoteGateway):
    """Parks every request on a future the test resolves by hand."""

    def __init__(self) -> None:
        self.pending: list[asyncio.Future] = []
        self.calls: list[tuple[str, str, Any]] = []

    async def request(self, method, path, params=None, payload=None):
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        self.calls.append((method, path, payload))
        return await future


class _CannedGateway(RemoteGateway):
    """Answers every request with the same body."""

    def __init__(self, body: Any) -> None:
        self.body = body
        self.calls: list[tuple[str, str, Any]] = []

    async def request(self, method, path, params=None, payload=None):
        self.calls.append((method, path, payload))
        return self.body


async def _drain() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


class TestWishlistToggle(unittest.IsolatedAsyncioTestCase):
    """Optimistic wishlist toggles."""

    def setUp(self) -> None:
        self.gateway = _PendingGateway()
        self.queue = MutationQueue(MarketApi(self.gateway))

    async def test_optimistic_flip_visible_before_await(self) -> None:
        future = self.queue.dispatch(ToggleWishlist(7))

        self.assertTrue(self.queue.state.is_wishlisted(7))
        self.assertEqual(
            self.queue.state_of(7, MutationType.TOGGLE_WISHLIST),
            MutationState.PENDING,
        )

        await _drain()
        self.gateway.pending[0].set_result({"is_wishlisted": True})
        outcome = await future

        self.assertEqual(outcome.status, OutcomeStatus.CONFIRMED)
        self.assertEqual(outcome.message, "Wishlist updated successfully")
        self.assertTrue(self.queue.state.is_wishlisted(7))
        self.assertEqual(self.queue.pending_count, 0)
        self.assertEqual(
            self.gateway.calls[0],
            ("POST", "/market/wishlist/toggle_product/", {"product_id": 7}),
        )

    async def test_second_dispatch_while_pending_is_busy(self) -> None:
        first = self.queue.dispatch(ToggleWishlist(7))
        busy = await self.queue.dispatch(ToggleWishlist(7))

        self.assertEqual(busy.status, OutcomeStatus.BUSY)
        self.assertEqual(busy.kind, ErrorKind.BUSY)
        self.assertTrue(self.queue.state.is_wishlisted(7))

        await _drain()
        self.assertEqual(len(self.gateway.calls), 1)
        self.gateway.pending[0].set_result({"is_wishlisted": True})
        await first

    async def test_other_products_not_blocked(self) -> None:
        self.queue.dispatch(ToggleWishlist(1))
        other = self.queue.dispatch(ToggleWishlist(2))
        cart = self.queue.dispatch(AddToCart(1))
        await _drain()

        self.assertEqual(len(self.gateway.calls), 3)
        self.assertEqual(self.queue.pending_count, 3)
        for future in self.gateway.pending:
            future.set_result({})
        await other
        await cart

    async def test_failure_rolls_back(self) -> None:
        future = self.queue.dispatch(ToggleWishlist(7))
        await _drain()
        self.gateway.pending[0].set_exception(NetworkFailure("offline"))

        outcome = await future

        self.assertEqual(outcome.status, OutcomeStatus.FAILED)
        self.assertEqual(outcome.kind, ErrorKind.NETWORK)
        self.assertEqual(outcome.message, "Failed to update wishlist")
        self.assertFalse(self.queue.state.is_wishlisted(7))
        self.assertEqual(
            outcome.as_dict(),
            {
                "status": False,
                "message": "Failed to update wishlist",
                "is_wishlisted": False,
            },
        )

    async def test_server_value_overrides_guess(self) -> None:
        """The product was already wishlisted on another device."""
        future = self.queue.dispatch(ToggleWishlist(7))
        await _drain()
        self.gateway.pending[0].set_result({"is_wishlisted": False})

        outcome = await future

        self.assertTrue(outcome.ok)
        self.assertIs(outcome.value, False)
        self.assertFalse(self.queue.state.is_wishlisted(7))

    async def test_status_false_body_is_failure(self) -> None:
        future = self.queue.dispatch(ToggleWishlist(7))
        await _drain()
        self.gateway.pending[0].set_result(
            {"status": False, "message": "Product unavailable"}
        )

        outcome = await future

        self.assertEqual(outcome.status, OutcomeStatus.FAILED)
        self.assertEqual(outcome.message, "Product unavailable")
        self.assertFalse(self.queue.state.is_wishlisted(7))

    async def test_unexpected_error_becomes_failed_outcome(self) -> None:
        future = self.queue.dispatch(ToggleWishlist(7))
        await _drain()
        self.gateway.pending[0].set_exception(RuntimeError("bug"))

        outcome = await future

        self.assertEqual(outcome.status, OutcomeStatus.FAILED)
        self.assertIsNone(outcome.kind)
        self.assertFalse(self.queue.state.is_wishlisted(7))


class TestWishlistSequences(unittest.IsolatedAsyncioTestCase):
    """Confirmed toggles in a row."""

    async def test_double_toggle_returns_to_start(self) -> None:
        queue = MutationQueue(MarketApi(_CannedGateway({})))
        await queue.dispatch(ToggleWishlist(3))
        self.assertTrue(queue.state.is_wishlisted(3))
        await queue.dispatch(ToggleWishlist(3))
        self.assertFalse(queue.state.is_wishlisted(3))

    async def test_disposed_queue_rejects(self) -> None:
        gateway = _CannedGateway({})
        queue = MutationQueue(MarketApi(gateway))
        queue.dispose()

        outcome = await queue.dispatch(ToggleWishlist(3))

        self.assertEqual(outcome.status, OutcomeStatus.FAILED)
        self.assertEqual(gateway.calls, [])

    async def test_resolution_after_dispose_not_written(self) -> None:
        gateway = _PendingGateway()
        state = ClientState()
        queue = MutationQueue(MarketApi(gateway), state)
        future = queue.dispatch(ToggleWishlist(3))
        await _drain()

        queue.dispose()
        gateway.pending[0].set_result({"is_wishlisted": False})
        outcome = await future

        self.assertTrue(outcome.ok)
        self.assertTrue(state.is_wishlisted(3))

    async def test_forgotten_product_not_resurrected(self) -> None:
        gateway = _PendingGateway()
        queue = MutationQueue(MarketApi(gateway))
        future = queue.dispatch(ToggleWishlist(3))
        await _drain()

        queue.state.forget(3)
        gateway.pending[0].set_exception(ServerError("HTTP 500", 500))
        await future

        self.assertNotIn(3, queue.state.wishlist)


class TestAddToCart(unittest.IsolatedAsyncioTestCase):
    """Optimistic cart additions."""

    async def test_quantity_added_before_await(self) -> None:
        gateway = _PendingGateway()
        queue = MutationQueue(MarketApi(gateway))

        future = queue.dispatch(AddToCart(5, quantity=2))

        self.assertEqual(queue.state.cart_quantity(5), 2)
        self.assertEqual(queue.state.cart_badge, 2)
        await _drain()
        self.assertEqual(
            gateway.calls[0],
            ("POST", "/market/cart/add_item/",
             {"product_id": 5, "quantity": 2}),
        )
        gateway.pending[0].set_result({"item": {"quantity": 3}})
        outcome = await future

        self.assertEqual(outcome.message, "Item added to cart successfully")
        self.assertEqual(outcome.value, 3)
        self.assertEqual(queue.state.cart_quantity(5), 3)
        self.assertNotIn("is_wishlisted", outcome.as_dict())

    async def test_second_add_while_pending_is_busy(self) -> None:
        gateway = _PendingGateway()
        queue = MutationQueue(MarketApi(gateway))
        first = queue.dispatch(AddToCart(5))

        busy = await queue.dispatch(AddToCart(5))

        self.assertEqual(busy.status, OutcomeStatus.BUSY)
        self.assertEqual(queue.state.cart_quantity(5), 1)
        await _drain()
        self.assertEqual(len(gateway.calls), 1)
        gateway.pending[0].set_result({})
        await first

    async def test_failure_removes_provisional_line(self) -> None:
        gateway = _PendingGateway()
        queue = MutationQueue(MarketApi(gateway))
        future = queue.dispatch(AddToCart(5))
        await _drain()
        gateway.pending[0].set_exception(ServerError("HTTP 400", 400))

        outcome = await future

        self.assertEqual(outcome.message, "Failed to add item to cart")
        self.assertEqual(queue.state.cart_quantity(5), 0)
        self.assertNotIn(5, queue.state.cart)

    async def test_no_server_quantity_keeps_guess(self) -> None:
        queue = MutationQueue(MarketApi(_CannedGateway(None)))
        queue.state.set_cart_quantity(5, 1)

        outcome = await queue.dispatch(AddToCart(5, quantity=2))

        self.assertTrue(outcome.ok)
        self.assertEqual(queue.state.cart_quantity(5), 3)

    async def test_invalid_quantity_rejected_locally(self) -> None:
        gateway = _CannedGateway({})
        queue = MutationQueue(MarketApi(gateway))

        outcome = await queue.dispatch(AddToCart(5, quantity=0))

        self.assertEqual(outcome.status, OutcomeStatus.FAILED)
        self.assertEqual(outcome.kind, ErrorKind.VALIDATION)
        self.assertEqual(gateway.calls, [])
        self.assertEqual(queue.state.cart_quantity(5), 0)

    async def test_stock_limit(self) -> None:
        gateway = _CannedGateway({})
        queue = MutationQueue(MarketApi(gateway))
        queue.state.set_cart_quantity(5, 2)

        outcome = await queue.dispatch(AddToCart(5, quantity=2, stock=3))

        self.assertEqual(outcome.message, "Only 3 in stock")
        self.assertEqual(queue.state.cart_quantity(5), 2)
        self.assertEqual(gateway.calls, [])


class TestWishlistReads(unittest.IsolatedAsyncioTestCase):
    """Server reads never override a pending toggle."""

    async def test_sync_skipped_while_toggle_pending(self) -> None:
        gateway = _PendingGateway()
        queue = MutationQueue(MarketApi(gateway))
        future = queue.dispatch(ToggleWishlist(3))

        self.assertIsNone(await queue.sync_wishlist(3))
        self.assertTrue(queue.state.is_wishlisted(3))

        await _drain()
        gateway.pending[0].set_result({})
        await future

    async def test_sync_reads_membership(self) -> None:
        queue = MutationQueue(MarketApi(_CannedGateway([{"id": 1}])))
        self.assertTrue(await queue.sync_wishlist(3))
        self.assertTrue(queue.state.is_wishlisted(3))

    async def test_load_wishlist_hydrates_and_clears(self) -> None:
        queue = MutationQueue(
            MarketApi(_CannedGateway([{"id": 1, "product": 4}]))
        )
        queue.state.set_wishlisted(9, True)

        members = await queue.load_wishlist()

        self.assertEqual(members, {4})
        self.assertTrue(queue.state.is_wishlisted(4))
        self.assertFalse(queue.state.is_wishlisted(9))


if __name__ == "__main__":
    unittest.main()

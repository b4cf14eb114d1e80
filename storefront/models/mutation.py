# storefront/models/mutation.py

"""Cart/wishlist mutation commands, requests and outcomes."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from storefront.gateway.errors import ErrorKind


class MutationType(Enum):
    """Kinds of user-initiated mutations."""

    ADD_TO_CART = "AddToCart"
    TOGGLE_WISHLIST = "ToggleWishlist"


class MutationState(Enum):
    """Per-key state machine: Idle → Pending → Confirmed|Failed → Idle."""

    IDLE = "Idle"
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    FAILED = "Failed"


class OutcomeStatus(Enum):
    """How a dispatched mutation ended."""

    CONFIRMED = "Confirmed"
    FAILED = "Failed"
    BUSY = "Busy"


@dataclass(frozen=True)
class AddToCart:
    """Add ``quantity`` units of a product to the cart.

    ``stock`` is the last known stock level, used for the client-side
    quantity check; ``None`` skips the check.
    """

    product_id: int
    quantity: int = 1
    stock: int | None = None

    type = MutationType.ADD_TO_CART


@dataclass(frozen=True)
class ToggleWishlist:
    """Flip a product's wishlist membership."""

    product_id: int

    type = MutationType.TOGGLE_WISHLIST


Mutation = AddToCart | ToggleWishlist


@dataclass
class MutationRequest:
    """Bookkeeping for one in-flight mutation."""

    type: MutationType
    target_id: int
    payload: dict[str, Any]
    state: MutationState = MutationState.PENDING


@dataclass(frozen=True)
class Outcome:
    """Result handed back to the caller of ``MutationQueue.dispatch``."""

    status: OutcomeStatus
    message: str
    kind: ErrorKind | None = None
    value: bool | int | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.CONFIRMED

    def as_dict(self) -> dict[str, object]:
        """Legacy ``{status, message, is_wishlisted?}`` shape."""
        data: dict[str, object] = {
            "status": self.ok,
            "message": self.message,
        }
        if isinstance(self.value, bool):
            data["is_wishlisted"] = self.value
        return data


@dataclass
class CartLine:
    """A provisional cart line; the server merges quantities."""

    product_id: int
    quantity: int = 1


@dataclass
class WishlistEntry:
    """Wishlist membership for one product."""

    product_id: int
    is_wishlisted: bool = True
    id: int | None = None
    created_at: datetime | None = field(default=None)

# storefront/models/page.py

"""Paged catalog results and per-query request state."""

from dataclasses import dataclass, field

from storefront.gateway.errors import ErrorKind
from storefront.models.product import Product


@dataclass
class PageResult:
    """One normalized page of catalog results.

    ``applied`` is ``False`` when the page arrived for a superseded
    request and therefore left the visible state untouched.
    """

    items: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    total_count: int = 0
    has_more: bool = False
    applied: bool = True


@dataclass
class PageState:
    """The visible result set for the active criteria."""

    items: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    page: int = 0
    total_count: int = 0
    has_more: bool = False


# ── Request state (tagged union) ─────────────────────────


@dataclass(frozen=True)
class Idle:
    """No request has been made yet."""


@dataclass(frozen=True)
class Loading:
    """A request is in flight."""

    page: int = 1


@dataclass(frozen=True)
class Success:
    """The latest request completed."""

    data: PageResult


@dataclass(frozen=True)
class Error:
    """The latest request failed; previous items stay visible."""

    reason: str
    kind: ErrorKind = ErrorKind.SERVER


RequestState = Idle | Loading | Success | Error

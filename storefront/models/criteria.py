# storefront/models/criteria.py

"""Immutable filter criteria captured from user input."""

import dataclasses
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from storefront.gateway.errors import ValidationFailure
from storefront.models.product import parse_decimal

ALL_CATEGORIES = "All"


class SortKey(Enum):
    """Client-side orderings offered by the listing screens."""

    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    RATING_DESC = "rating-desc"
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE = "title"


@dataclass(frozen=True)
class PriceRange:
    """Inclusive price bounds; either side may be unset."""

    min: Decimal | None = None
    max: Decimal | None = None

    def __post_init__(self) -> None:
        for name in ("min", "max"):
            raw = getattr(self, name)
            if raw is None or isinstance(raw, Decimal):
                continue
            parsed = parse_decimal(raw)
            if parsed is None:
                msg = f"Price bound {name}={raw!r} is not a number"
                raise ValidationFailure(msg)
            object.__setattr__(self, name, parsed)
        if (
            self.min is not None
            and self.max is not None
            and self.min > self.max
        ):
            msg = (
                f"Minimum price {self.min} is above "
                f"maximum price {self.max}"
            )
            raise ValidationFailure(msg)

    @property
    def is_unbounded(self) -> bool:
        return self.min is None and self.max is None


@dataclass(frozen=True)
class FilterCriteria:
    """A snapshot of the user's filter/sort selection.

    A fresh instance is built for every input change; use
    :meth:`with_changes` instead of mutating.
    """

    category: int | str = ALL_CATEGORIES
    price_range: PriceRange = field(default_factory=PriceRange)
    search_term: str = ""
    is_featured: bool | None = None
    sort_key: SortKey | None = None

    def with_changes(self, **changes: Any) -> "FilterCriteria":
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

# storefront/models/product.py

"""Product data model for inter-module data flow.

The remote catalog transmits decimals either as strings (``"5000.00"``)
or as numbers, and timestamps as ISO-8601 strings. ``Product.from_api``
parses every field defensively so that one odd row never breaks a page.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a price/rating transmitted as string or number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, OverflowError, ValueError):
        return default


def _optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, OverflowError, ValueError):
        return None


@dataclass
class ProductImage:
    """A single product image."""

    url: str
    is_primary: bool = False


@dataclass
class Product:
    """Represents a single product listing from the remote catalog."""

    id: int
    name: str = ""
    price: Decimal | None = None
    original_price: Decimal | None = None
    stock: int = 0
    rating: Decimal | None = None
    review_count: int = 0
    category: int | None = None
    images: list[ProductImage] = field(
        default_factory=lambda: list[ProductImage]()
    )
    is_featured: bool = False
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    slug: str = ""
    description: str = ""
    condition: str = "new"
    seller: int | None = None

    @property
    def primary_image(self) -> ProductImage | None:
        """The flagged primary image, else the first image."""
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    @property
    def discount_percent(self) -> int:
        """Whole-percent saving of ``price`` over ``original_price``."""
        if (
            self.price is None
            or self.original_price is None
            or self.original_price <= 0
            or self.original_price <= self.price
        ):
            return 0
        saving = (self.original_price - self.price) / self.original_price
        return int((saving * 100).quantize(Decimal("1")))

    @staticmethod
    def _parse_images(raw: Any) -> list[ProductImage]:
        """Parse image rows, keeping at most one primary flag."""
        images: list[ProductImage] = []
        if not isinstance(raw, list):
            return images
        primary_seen = False
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            url = str(entry.get("image") or entry.get("url") or "")
            if not url:
                continue
            flagged = bool(entry.get("is_primary")) and not primary_seen
            primary_seen = primary_seen or flagged
            images.append(ProductImage(url=url, is_primary=flagged))
        return images

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Product":
        """Build a Product from one row of ``/market/products/``.

        Raises ``ValueError`` when the row has no usable integer ``id``.
        """
        raw_id = data.get("id")
        msg = f"Product row without usable id: {data!r:.80}"
        if isinstance(raw_id, bool) or raw_id is None:
            raise ValueError(msg)
        try:
            product_id = int(raw_id)
        except (TypeError, OverflowError, ValueError) as exc:
            raise ValueError(msg) from exc

        return cls(
            id=product_id,
            name=str(data.get("name") or ""),
            price=parse_decimal(data.get("price")),
            original_price=parse_decimal(data.get("original_price")),
            stock=max(0, _parse_int(data.get("stock"))),
            rating=parse_decimal(data.get("rating")),
            review_count=max(0, _parse_int(data.get("review_count"))),
            category=_optional_int(data.get("category")),
            images=cls._parse_images(data.get("images")),
            is_featured=bool(data.get("is_featured", False)),
            is_active=bool(data.get("is_active", True)),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            slug=str(data.get("slug") or ""),
            description=str(data.get("description") or ""),
            condition=str(data.get("condition") or "new"),
            seller=_optional_int(data.get("seller")),
        )

    def to_dict(self) -> dict[str, object]:
        """Serialise to plain JSON-compatible values."""
        primary = self.primary_image
        return {
            "id": self.id,
            "name": self.name,
            "price": str(self.price) if self.price is not None else None,
            "original_price": (
                str(self.original_price)
                if self.original_price is not None
                else None
            ),
            "stock": self.stock,
            "rating": str(self.rating) if self.rating is not None else None,
            "review_count": self.review_count,
            "category": self.category,
            "is_featured": self.is_featured,
            "discount_percent": self.discount_percent,
            "image": primary.url if primary else "",
            "created_at": (
                self.created_at.isoformat() if self.created_at else None
            ),
        }

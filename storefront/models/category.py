# storefront/models/category.py

"""Catalog category model."""

from dataclasses import dataclass
from typing import Any


@dataclass
class Category:
    """A product category as served by ``/market/categories/``."""

    id: int
    name: str
    slug: str = ""
    description: str = ""
    parent: int | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Category":
        parent = data.get("parent")
        return cls(
            id=int(data["id"]),
            name=str(data.get("name") or ""),
            slug=str(data.get("slug") or ""),
            description=str(data.get("description") or ""),
            parent=int(parent) if parent is not None else None,
        )

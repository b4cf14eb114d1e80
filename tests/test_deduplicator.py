# tests/test_deduplicator.py

"""Tests for id-based ProductDeduplicator."""

import unittest

from storefront.filters.deduplicator import ProductDeduplicator
from storefront.models.product import Product


def _make(pid: int, name: str = "") -> Product:
    """Create a minimal Product."""
    return Product(id=pid, name=name)


class TestDeduplicate(unittest.TestCase):
    """ProductDeduplicator.deduplicate / append behaviour."""

    def test_empty_list(self) -> None:
        kept, removed = ProductDeduplicator.deduplicate([])
        self.assertEqual(kept, [])
        self.assertEqual(removed, 0)

    def test_unique_ids_kept(self) -> None:
        kept, removed = ProductDeduplicator.deduplicate(
            [_make(1), _make(2), _make(3)]
        )
        self.assertEqual([p.id for p in kept], [1, 2, 3])
        self.assertEqual(removed, 0)

    def test_first_occurrence_wins(self) -> None:
        """A repeated id keeps the earlier copy and position."""
        kept, removed = ProductDeduplicator.deduplicate(
            [_make(1, "old"), _make(2), _make(1, "new")]
        )
        self.assertEqual([p.id for p in kept], [1, 2])
        self.assertEqual(kept[0].name, "old")
        self.assertEqual(removed, 1)

    def test_append_skips_boundary_repeat(self) -> None:
        """A server repeating the last item of page 1 on page 2."""
        page_one = [_make(1), _make(2), _make(3)]
        page_two = [_make(3), _make(4)]
        merged, removed = ProductDeduplicator.append(page_one, page_two)
        self.assertEqual([p.id for p in merged], [1, 2, 3, 4])
        self.assertEqual(removed, 1)

    def test_append_does_not_mutate_inputs(self) -> None:
        page_one = [_make(1)]
        ProductDeduplicator.append(page_one, [_make(2)])
        self.assertEqual(len(page_one), 1)


if __name__ == "__main__":
    unittest.main()

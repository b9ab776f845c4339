#!/usr/bin/env python3
"""
Tests for the data models.
"""

import sys
import unittest
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from quote_parser.models import ColumnMapping, ItemBlock, LineItem, TextRow


class TestModels(unittest.TestCase):
    """Test cases for model helpers."""

    def test_line_item_to_dict(self):
        item = LineItem(part_no="9A-1234", description="FILTER", quantity=1, weight=2.204623,
                        unit_price=50.0, availability="In Stock", images=[b"\xff\xd8"], line_no="2")
        self.assertEqual(item.to_dict(), {
            "lineNo": "2",
            "qty": 1,
            "partNo": "9A-1234",
            "desc": "FILTER",
            "weight": 2.205,
            "unitPrice": 50.0,
            "availability": "In Stock",
            "notes": "",
            "images": ["/9g="],
        })

    def test_line_item_defaults(self):
        item = LineItem(part_no="ITEM-1")
        self.assertEqual(item.description, "CAT COMPONENT")
        self.assertEqual(item.quantity, 1)
        self.assertEqual(item.images, [])
        self.assertIsNone(item.line_no)

    def test_text_row_orders_fragments(self):
        row = TextRow(y=100, fragments=[(200, "KIT"), (50, "1)"), (120, "GASKET")])
        self.assertEqual(row.text, "1) GASKET KIT")

    def test_item_block(self):
        block = ItemBlock(lines=["first"], images=[b"a"])
        block.append("second", [b"a", b"b"])
        self.assertEqual(block.text, "first\nsecond")
        self.assertEqual(block.images, [b"a", b"b"])

    def test_column_mapping_validity(self):
        self.assertTrue(ColumnMapping(0, {"part": 1, "price": 3}).is_valid)
        self.assertFalse(ColumnMapping(0, {"description": 0, "price": 1}).is_valid)
        self.assertIsNone(ColumnMapping(0, {}).get("weight"))


if __name__ == '__main__':
    unittest.main()

#!/usr/bin/env python3
"""
Tests for the spreadsheet row mapper.
"""

import os
import sys
import tempfile
import unittest
from io import BytesIO
from pathlib import Path

from openpyxl import Workbook

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from quote_parser.table_parser import (
    SpreadsheetParser,
    coerce_number,
    match_role,
    normalize_header,
    parse_spreadsheet,
    read_workbook_rows,
)


def workbook_bytes(rows):
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class TestHeaderRoles(unittest.TestCase):
    """Test cases for header normalization and role matching."""

    def test_normalize_header(self):
        self.assertEqual(normalize_header("Part #"), "part")
        self.assertEqual(normalize_header("Unit Price ($)"), "unitprice")
        self.assertEqual(normalize_header(12), "")
        self.assertEqual(normalize_header(None), "")

    def test_match_role(self):
        cases = {
            "Qty": "quantity",
            "Part Number": "part",
            "SKU": "part",
            "Item Description": "description",
            "Unit Price": "price",
            "Price Each": "price",
            "Weight (lbs)": "weight",
            "Lead Time": "availability",
            "Extended Price": None,
            "Total": None,
            "Notes": None,
            "Line Item": None,
            "Line No.": None,
        }
        for header, role in cases.items():
            with self.subTest(header=header):
                self.assertEqual(match_role(normalize_header(header)), role)

    def test_coerce_number(self):
        self.assertEqual(coerce_number("$1,250.00"), 1250.0)
        self.assertEqual(coerce_number(3), 3.0)
        self.assertEqual(coerce_number(None), 0.0)
        self.assertEqual(coerce_number("n/a"), 0.0)
        self.assertEqual(coerce_number("1.2.3"), 0.0)


class TestSpreadsheetParser(unittest.TestCase):
    """Test cases for SpreadsheetParser."""

    def setUp(self):
        self.parser = SpreadsheetParser()
        self.header = ["Qty", "Part Number", "Description", "Unit Price"]

    def test_header_mapped_rows(self):
        items = self.parser.parse([self.header, [3, "AB-100", "Bolt", "$2.50"]])
        self.assertEqual(len(items), 1)
        item = items[0]
        self.assertEqual(item.quantity, 3)
        self.assertEqual(item.part_no, "AB-100")
        self.assertEqual(item.unit_price, 2.5)
        self.assertEqual(item.description, "Bolt")

    def test_line_item_column_does_not_claim_part(self):
        rows = [
            ["Line Item", "Qty", "Part Number", "Description", "Unit Price"],
            [1, 3, "AB-100", "Bolt", "$2.50"],
        ]
        self.assertEqual(self.parser.detect_header(rows).columns,
                         {"quantity": 1, "part": 2, "description": 3, "price": 4})
        item = self.parser.parse(rows)[0]
        self.assertEqual(item.part_no, "AB-100")
        self.assertEqual(item.quantity, 3)
        self.assertEqual(item.unit_price, 2.5)

    def test_zero_price_rows_are_filtered(self):
        items = self.parser.parse([
            self.header,
            [3, "AB-100", "Bolt", "$2.50"],
            [1, "AB-200", "Washer", "0"],
            [1, "AB-300", "Nut", None],
        ])
        self.assertEqual([item.part_no for item in items], ["AB-100"])

    def test_header_below_title_rows(self):
        rows = [
            ["Dealer Quote", None, None, None],
            [None, None, None, None],
            self.header,
            [2, "CD-300", "Hose clamp", 1.75],
        ]
        mapping = self.parser.detect_header(rows)
        self.assertEqual(mapping.header_row, 2)
        self.assertEqual(mapping.columns, {"quantity": 0, "part": 1, "description": 2, "price": 3})
        self.assertEqual(self.parser.parse(rows)[0].unit_price, 1.75)

    def test_extended_price_column_is_not_unit_price(self):
        rows = [
            ["Part", "Qty", "Extended Price", "Unit Price"],
            ["XY-1", 4, "$40.00", "$10.00"],
        ]
        item = self.parser.parse(rows)[0]
        self.assertEqual(item.unit_price, 10.0)
        self.assertEqual(item.quantity, 4)

    def test_optional_columns(self):
        rows = [
            ["Part", "Price", "Weight", "Availability"],
            ["EF-1", 12, "0.5 kg", "In Stock"],
            ["EF-2", 8, 2.5, None],
        ]
        first, second = self.parser.parse(rows)
        self.assertEqual(first.quantity, 1)
        self.assertAlmostEqual(first.weight, 1.10231)
        self.assertEqual(first.availability, "In Stock")
        self.assertEqual(first.description, "CAT COMPONENT")
        self.assertEqual(second.weight, 2.5)
        self.assertEqual(second.availability, "")

    def test_missing_part_and_date_parts(self):
        rows = [
            self.header,
            [1, None, "Grease", "$6.00"],
            [1, "12/2024", "Calendar", "$5.00"],
        ]
        items = self.parser.parse(rows)
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].part_no, "ITEM-1")

    def test_rows_without_header_are_scanned(self):
        rows = [
            ["1R-0750 HYDRAULIC FILTER", "$45.20"],
            ["Seal", "call for quote"],
        ]
        self.assertIsNone(self.parser.detect_header(rows))
        items = self.parser.parse(rows)
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].part_no, "1R-0750")
        self.assertEqual(items[0].unit_price, 45.2)
        self.assertEqual(items[0].description, "HYDRAULIC FILTER")

    def test_header_without_part_column_falls_back_to_scan(self):
        rows = [
            ["Description", "Unit Price"],
            ["1R-0750 FILTER", "$45.20"],
        ]
        mapping = self.parser.detect_header(rows)
        self.assertFalse(mapping.is_valid)
        items = self.parser.parse(rows)
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].part_no, "1R-0750")
        self.assertEqual(items[0].quantity, 1)

    def test_empty_sheet(self):
        self.assertEqual(self.parser.parse([]), [])
        self.assertEqual(self.parser.parse([[None, None]]), [])


class TestWorkbookReading(unittest.TestCase):
    """Test cases for reading .xlsx workbooks with openpyxl."""

    def setUp(self):
        self.rows = [
            ["Qty", "Part Number", "Description", "Unit Price"],
            [3, "AB-100", "Bolt", "$2.50"],
            [1, "AB-200", "Washer", 0],
        ]

    def test_read_from_bytes(self):
        rows = read_workbook_rows(workbook_bytes(self.rows))
        self.assertEqual(rows[0], ["Qty", "Part Number", "Description", "Unit Price"])
        self.assertEqual(rows[1][0], 3)

    def test_parse_workbook_file(self):
        with tempfile.NamedTemporaryFile(suffix='.xlsx', delete=False) as f:
            f.write(workbook_bytes(self.rows))
            temp_file = f.name
        try:
            items = parse_spreadsheet(temp_file)
        finally:
            os.unlink(temp_file)

        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].part_no, "AB-100")
        self.assertEqual(items[0].quantity, 3)


if __name__ == '__main__':
    unittest.main()

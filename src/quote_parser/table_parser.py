#!/usr/bin/env python3
"""
Spreadsheet parser for extracting line items from quote worksheets.
"""

import re
import logging
from io import BytesIO
from typing import Any, Dict, List, Optional, Sequence, Tuple

from openpyxl import load_workbook

from .fields import ItemAssembler, is_date_string
from .models import ColumnMapping, LineItem
from .noise_filter import clean_description
from .pricing import PriceDisambiguator
from .settings import ExtractionSettings
from .units import WEIGHT_PATTERN, normalize_weight

logger = logging.getLogger(__name__)

# role -> exact header spellings (lowercase letters only)
ROLE_EXACT: Dict[str, set] = {
    'quantity': {'qty', 'qnty', 'quantity', 'qtyordered', 'orderqty', 'orderquantity', 'units'},
    'part': {'part', 'partno', 'partnum', 'partnumber', 'pn', 'sku', 'item', 'itemno',
             'itemnumber', 'catalognumber', 'productnumber', 'model', 'modelnumber'},
    'description': {'description', 'desc', 'itemdescription', 'productdescription',
                    'partdescription', 'name', 'productname'},
    'price': {'price', 'unitprice', 'priceea', 'priceeach', 'eachprice', 'unitcost',
              'netprice', 'sellprice', 'yourprice', 'ea', 'each'},
    'weight': {'weight', 'wt', 'weightlbs', 'weightlb', 'lbs', 'weightkg', 'unitweight'},
    'availability': {'availability', 'avail', 'status', 'stock', 'leadtime', 'instock'},
}

# substring fallbacks, checked in this order
ROLE_CONTAINS: List[Tuple[str, Tuple[str, ...]]] = [
    ('description', ('description', 'desc')),
    ('price', ('price', 'cost')),
    ('quantity', ('qty', 'quantity')),
    ('weight', ('weight',)),
    ('availability', ('avail', 'stock', 'leadtime', 'status')),
    ('part', ('part', 'sku', 'item', 'model', 'catalog')),
]

# extended/total columns are never the unit price
PRICE_EXCLUSIONS = ('total', 'extended', 'ext', 'amount', 'subtotal')

# "Line Item", "Line No" number the rows and never hold the part
LINE_LABEL_PREFIX = 'line'


def normalize_header(value: Any) -> str:
    """Lowercase letters only: "Part #" -> "part", "Unit Price ($)" -> "unitprice"."""
    if value is None or not isinstance(value, str):
        return ""
    return re.sub(r'[^a-z]', '', value.lower())


def match_role(header: str) -> Optional[str]:
    """Semantic role of a normalized header cell, if any."""
    if not header:
        return None
    for role, spellings in ROLE_EXACT.items():
        if header in spellings:
            return role
    for role, fragments in ROLE_CONTAINS:
        if any(fragment in header for fragment in fragments):
            if role == 'price' and any(word in header for word in PRICE_EXCLUSIONS):
                continue
            if role == 'part' and header.startswith(LINE_LABEL_PREFIX):
                continue
            return role
    return None


def coerce_number(value: Any) -> float:
    """Numeric cell value; text is stripped to its digits and decimal point."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    digits = re.sub(r'[^\d.]', '', str(value))
    if not digits:
        return 0.0
    try:
        return float(digits)
    except ValueError:
        logger.debug(f"Cannot coerce {value!r} to a number")
        return 0.0


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


class SpreadsheetParser:
    """Maps worksheet rows to line items through a header-derived ColumnMapping."""

    def __init__(self, settings: Optional[ExtractionSettings] = None,
                 assembler: Optional[ItemAssembler] = None):
        self.settings = settings or ExtractionSettings()
        self.assembler = assembler or ItemAssembler(PriceDisambiguator(self.settings))

    def detect_header(self, rows: Sequence[Sequence[Any]]) -> Optional[ColumnMapping]:
        """
        Find the first row, within the scan depth, naming at least two roles.

        Each column is assigned to at most one role and the leftmost column wins.
        """
        for row_index, row in enumerate(rows[:self.settings.header_scan_rows]):
            columns: Dict[str, int] = {}
            for col_index, cell in enumerate(row or []):
                role = match_role(normalize_header(cell))
                if role and role not in columns:
                    columns[role] = col_index
            if len(columns) >= 2:
                logger.info(f"Header row {row_index + 1}: {columns}")
                return ColumnMapping(header_row=row_index, columns=columns)
        return None

    def parse(self, rows: Sequence[Sequence[Any]]) -> List[LineItem]:
        """
        Extract line items from worksheet rows.

        Args:
            rows: Raw cell values, first axis row, second axis column

        Returns:
            Items for every data row with a positive unit price
        """
        rows = [list(row or []) for row in rows]
        mapping = self.detect_header(rows)
        start = mapping.header_row + 1 if mapping else 0

        data_rows = [row for row in rows[start:] if any(cell_text(c) for c in row)]
        if mapping and mapping.is_valid:
            items = [self.map_row(row, mapping, index)
                     for index, row in enumerate(data_rows, start=1)]
        else:
            logger.info("No usable header row, scanning rows heuristically")
            items = [self.scan_row(row, index)
                     for index, row in enumerate(data_rows, start=1)]

        items = [item for item in items if item]
        logger.info(f"Parsed {len(items)} items from {len(data_rows)} spreadsheet rows")
        return items

    def map_row(self, row: List[Any], mapping: ColumnMapping, index: int) -> Optional[LineItem]:
        """Read one data row through the column mapping."""

        def cell(role: str) -> Any:
            col = mapping.get(role)
            if col is None or col >= len(row):
                return None
            return row[col]

        unit_price = coerce_number(cell('price'))
        if unit_price <= 0:
            logger.debug(f"Skipping row {index}: no price")
            return None

        part_no = cell_text(cell('part'))
        if part_no and is_date_string(part_no):
            logger.debug(f"Skipping row {index}: {part_no!r} is a date")
            return None

        quantity = int(coerce_number(cell('quantity'))) if mapping.get('quantity') is not None else 1

        raw_weight = cell('weight')
        if isinstance(raw_weight, str) and WEIGHT_PATTERN.search(raw_weight):
            weight = normalize_weight(raw_weight)
        else:
            weight = coerce_number(raw_weight)

        return LineItem(
            part_no=part_no or f"ITEM-{index}",
            description=clean_description(cell_text(cell('description'))),
            quantity=quantity if quantity > 0 else 1,
            weight=weight,
            unit_price=unit_price,
            availability=cell_text(cell('availability')),
        )

    def scan_row(self, row: List[Any], index: int) -> Optional[LineItem]:
        """Treat a row without a mapping as one free-text block of quantity 1."""
        text = " ".join(cell_text(c) for c in row if cell_text(c))
        return self.assembler.assemble(text, index, quantity=1)


def read_workbook_rows(source) -> List[List[Any]]:
    """
    Read the first worksheet of an .xlsx/.xlsm workbook.

    Args:
        source: Path, file-like object, or raw bytes

    Returns:
        Rows of cached cell values
    """
    if isinstance(source, (bytes, bytearray)):
        source = BytesIO(source)
    workbook = load_workbook(source, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        rows = [list(row) for row in sheet.iter_rows(values_only=True)]
        logger.info(f"Read {len(rows)} rows from worksheet {sheet.title!r}")
    finally:
        workbook.close()
    return rows


def parse_spreadsheet(source, settings: Optional[ExtractionSettings] = None) -> List[LineItem]:
    """Convenience function to parse a workbook file."""
    return SpreadsheetParser(settings).parse(read_workbook_rows(source))

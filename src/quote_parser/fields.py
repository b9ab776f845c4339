#!/usr/bin/env python3
"""
Per-block field extraction shared by the text, spreadsheet and PDF paths.

A block is the raw text believed to describe one item. Assembly reads the
quantity, disambiguates the unit price, pulls weight, notes and availability
out of the text, picks a part identifier, and cleans what is left into the
description. Blocks without a usable price are not items.
"""

import re
import logging
from typing import List, Optional, Tuple

from .availability import extract_availability
from .models import LineItem
from .noise_filter import clean_description
from .pricing import PriceDisambiguator
from .units import WEIGHT_PATTERN, normalize_weight

logger = logging.getLogger(__name__)

# "1) 2 ..." or "1. 2 ..." -> line label and quantity
BLOCK_PREFIX = re.compile(r'^\s*(?P<line>\d{1,4})[).]\s+(?:(?P<qty>\d{1,5})(?=\s))?')
QTY_LABEL = re.compile(r'\b(?:Qty|Quantity)\.?\s*[:#]?\s*(\d{1,5})\b', re.IGNORECASE)
LEADING_QTY = re.compile(r'^\s*(\d{1,4})\s+(\S+)')

PART_SHAPE = re.compile(r'^[A-Z0-9][A-Z0-9.\-/]{1,18}[A-Z0-9]$', re.IGNORECASE)
SHORT_NUMBER = re.compile(r'^\d{1,4}$')
DECIMAL_NUMBER = re.compile(r'^\d+\.\d+$')
TOKEN_PUNCTUATION = '$,;()[]{}"\'*'

NOTE_PATTERNS = [
    re.compile(r'Line item note:\s*(.*)', re.IGNORECASE),
    re.compile(r'(Replaces Part #\s*.*)', re.IGNORECASE),
    re.compile(r'(Non-returnable part)', re.IGNORECASE),
]

SUMMARY_LINE = re.compile(
    r'^[ \t]*(?:SUMMARY OF CHARGES|ORDER SUBTOTAL|ORDER TOTAL|SUBTOTAL|GRAND TOTAL|'
    r'TOTAL TAX|Shipping/Miscellaneous|Payment Information)\b',
    re.IGNORECASE | re.MULTILINE,
)


def is_date_string(token: str) -> bool:
    """True for month/year or full date shapes such as 12/2024 or 01-15-25."""
    return bool(
        re.match(r'^\d{1,2}[-/](?:\d{2}|(?:19|20)\d{2})$', token)
        or re.match(r'^\d{1,2}[-/]\d{1,2}[-/]\d{2,4}$', token)
    )


def is_part_number(token: str) -> bool:
    """Whether a bare token has the shape of a part identifier."""
    if not token or not PART_SHAPE.match(token):
        return False
    if not re.search(r'\d', token):
        return False
    if SHORT_NUMBER.match(token) or DECIMAL_NUMBER.match(token):
        return False
    # "5.5kg", "10lbs"
    if WEIGHT_PATTERN.fullmatch(token):
        return False
    return not is_date_string(token)


def find_part_number(text: str) -> Optional[str]:
    """
    Identify the part identifier in a fragment.

    An explicit "PART:" token wins; otherwise the last token of part-number
    shape is used. Bare 1-4 digit numbers are quantities or line numbers.
    """
    tokens = (text or "").split()

    for raw in tokens:
        if raw.endswith(':'):
            candidate = raw.rstrip(':').strip(TOKEN_PUNCTUATION)
            if is_part_number(candidate):
                return candidate

    for raw in reversed(tokens):
        candidate = raw.strip(TOKEN_PUNCTUATION).rstrip(':.')
        if is_part_number(candidate):
            return candidate
    return None


def extract_notes(text: str) -> Tuple[List[str], str]:
    """Move line-item notes out of the text, one note per matching line."""
    notes = []
    kept = []
    for line in (text or "").split('\n'):
        for pattern in NOTE_PATTERNS:
            match = pattern.search(line)
            if match:
                if match.group(1).strip():
                    notes.append(match.group(1).strip())
                line = line[:match.start()] + " " + line[match.end():]
                break
        kept.append(line)
    return notes, '\n'.join(kept)


def read_quantity(text: str) -> Optional[int]:
    """Quantity stated without a line marker: "Qty: 4" or "4 123-4567 ..."."""
    label = QTY_LABEL.search(text or "")
    if label:
        return int(label.group(1))
    leading = LEADING_QTY.match(text or "")
    if leading and is_part_number(leading.group(2).strip(TOKEN_PUNCTUATION).rstrip(':')):
        return int(leading.group(1))
    return None


def truncate_at_summary(text: str) -> str:
    """Cut a block at the first summary/footer line it contains."""
    match = SUMMARY_LINE.search(text or "")
    return text[:match.start()] if match else text


class ItemAssembler:
    """Turns raw item blocks into LineItems."""

    def __init__(self, disambiguator: Optional[PriceDisambiguator] = None):
        self.disambiguator = disambiguator or PriceDisambiguator()

    def assemble(self, block_text: str, index: int,
                 line_no: Optional[str] = None,
                 quantity: Optional[int] = None,
                 images: Optional[List[bytes]] = None) -> Optional[LineItem]:
        """
        Build a LineItem from a block of text.

        Args:
            block_text: Raw text of the block, possibly spanning several lines
            index: 1-based position of the block, used for placeholder part numbers
            line_no: Line label already known to the caller
            quantity: Quantity already known to the caller
            images: Images anchored to the block, in document order

        Returns:
            LineItem, or None when the block has no plausible unit price
        """
        body = block_text or ""
        prefix = BLOCK_PREFIX.match(body)
        if prefix:
            line_no = line_no or prefix.group('line')
            if quantity is None and prefix.group('qty'):
                quantity = int(prefix.group('qty'))
            body = body[prefix.end():]

        if quantity is None:
            quantity = read_quantity(body)
        quantity = quantity if quantity and quantity > 0 else 1

        unit_price = self.disambiguator.disambiguate(body, quantity)
        if unit_price <= 0:
            logger.debug(f"Discarding block {index}: no price in {body[:60]!r}")
            return None

        weight = normalize_weight(body)
        notes, body = extract_notes(body)
        availability, remaining = extract_availability(body)

        part_no = find_part_number(remaining)
        if part_no:
            remaining = remaining.replace(part_no, " ", 1)
        else:
            part_no = f"ITEM-{index}"

        return LineItem(
            part_no=part_no,
            description=clean_description(remaining),
            quantity=quantity,
            weight=weight,
            unit_price=unit_price,
            availability=availability,
            images=list(images or []),
            line_no=line_no,
            notes=" ".join(notes),
        )


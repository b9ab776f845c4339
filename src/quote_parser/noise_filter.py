"""
Noise filtering for item descriptions.

Dealer quotes leak vendor addresses, column headers, totals and status
boilerplate into the text that surrounds each item. The rules below are
applied in order; each one is anchored on a fixed phrase so that genuine
description words survive.
"""

import re
import logging
from typing import List, Pattern, Tuple

from .models import DEFAULT_DESCRIPTION
from .units import WEIGHT_UNITS

logger = logging.getLogger(__name__)

_AMOUNT = r'\$?\s?\d[\d,]*\.\d{2}(?!\d)'
_WEIGHT = (
    r'(?:\bWeight\s*:?\s*)?(?<![\d.])\d+(?:\.\d+)?\s*'
    r'(?:' + WEIGHT_UNITS + r')(?![A-Za-z])'
)

# matched case-sensitively so prose such as "additional description" survives
COLUMN_HEADERS = [
    "Unit Price", "Extended Price", "Total Price", "Product Description",
    "Line Item", "Availability", "Quantity", "Part Number", "Description",
]

NOISE_RULES: List[Tuple[str, Pattern]] = [
    ("vendor", re.compile(
        r'RING POWER CORPORATION|\bRing Power\b|\bCat Vantage Rewards\b|'
        r'10421 Fern Hill Dr\.?|\bFern Hill\b|\bRiverview\b|\bTampa\b|'
        r'813-671-3700|\b33578\b|\bUnited States\b|\bFlorida\b',
        re.IGNORECASE)),
    ("section", re.compile(
        r'\bOrder Information\b|\bPickup Location\b|\bPickup Method\b|'
        r'\bSUMMARY OF CHARGES\b|\bItems In Your Order\b|\bPage \d+ of \d+\b',
        re.IGNORECASE)),
    ("column_header", re.compile(
        r'\b(?:'
        + '|'.join(re.escape(h) for h in COLUMN_HEADERS + [h.upper() for h in COLUMN_HEADERS])
        + r')\b')),
    ("summary", re.compile(
        r'\bORDER SUBTOTAL\b|\bShipping/Miscellaneous\b|\bTotal Tax\b|'
        r'\bORDER TOTAL\b|\bSUBTOTAL\b|\b(?-i:TAX)\b|\bContact Dealer\b',
        re.IGNORECASE)),
    ("status", re.compile(
        r'\bCore Charge Included\b|\bNon-returnable(?: part)?\b|\(USD\)',
        re.IGNORECASE)),
    ("weight", re.compile(_WEIGHT, re.IGNORECASE)),
    ("priced_unit", re.compile(_AMOUNT + r'\s*(?:ea\b\.?|each\b|USD\b)', re.IGNORECASE)),
    ("amount", re.compile(_AMOUNT)),
    ("whole_dollars", re.compile(r'\$\s?\d[\d,]*(?![\d.])')),
    ("at_sign", re.compile(r'(?:^|\s)@(?=\s|$)')),
    ("separators", re.compile(r'[:|]')),
]

LEADING_COUNTER = re.compile(r'^\s*(?:\d{1,4}(?:\)|\.(?=\s))\s*)+')
LEADING_SYMBOLS = re.compile(r'^[\s\-_>,;.]+')
TRAILING_SYMBOLS = re.compile(r'[\s\-_>,;]+$')
WHITESPACE = re.compile(r'\s+')


def strip_noise(text: str) -> str:
    """Apply the noise rules and tidy whitespace; may return an empty string."""
    if not text:
        return ""

    cleaned = str(text)
    for _, pattern in NOISE_RULES:
        cleaned = pattern.sub(" ", cleaned)

    cleaned = WHITESPACE.sub(" ", cleaned).strip()
    cleaned = LEADING_COUNTER.sub("", cleaned)
    cleaned = LEADING_SYMBOLS.sub("", cleaned)
    cleaned = TRAILING_SYMBOLS.sub("", cleaned)
    return WHITESPACE.sub(" ", cleaned).strip()


def clean_description(text: str) -> str:
    """
    Reduce a raw fragment to its item description.

    Args:
        text: Raw fragment text

    Returns:
        Cleaned description, never empty
    """
    cleaned = strip_noise(text)
    if not cleaned:
        logger.debug(f"Nothing left of {text!r} after cleaning, using placeholder")
        return DEFAULT_DESCRIPTION
    return cleaned

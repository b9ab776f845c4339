"""
Mass normalization: every detected weight is reported in pounds.
"""

import re
import logging

logger = logging.getLogger(__name__)

KG_TO_LB = 2.20462

# "1bs" is how OCR commonly reads "lbs"
WEIGHT_UNITS = r'lbs|lb|1bs|pounds|pound|kgs|kg|kilograms|kilogram|k\.g\.'

WEIGHT_PATTERN = re.compile(
    r'(?<![\d.])(\d+(?:\.\d+)?)\s*'
    r'(' + WEIGHT_UNITS + r')'
    r'(?![A-Za-z])',
    re.IGNORECASE,
)


def is_kilograms(unit: str) -> bool:
    unit = unit.lower()
    return "kg" in unit or "kilogram" in unit or "k.g" in unit


def normalize_weight(text: str) -> float:
    """
    Find the first mass quantity in text and return it in pounds.

    Args:
        text: Free text that may contain e.g. "5.5 lbs" or "2 kg"

    Returns:
        Weight in pounds, or 0.0 when no unit token is present
    """
    if not text:
        return 0.0

    match = WEIGHT_PATTERN.search(str(text))
    if not match:
        return 0.0

    value = float(match.group(1))
    if is_kilograms(match.group(2)):
        value *= KG_TO_LB
        logger.debug(f"Converted {match.group(0)!r} to {value:.3f} lbs")
    return value

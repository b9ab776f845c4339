"""
Stock and lead-time phrase extraction.
"""

import re
from typing import List, Pattern, Tuple

_MONTH = r'(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*'

AVAILABILITY_PATTERNS: List[Pattern] = [
    re.compile(r'All[ \t]+\d+[ \t]+by[ \t]+' + _MONTH + r'[ \t]+\d{1,2}(?:,?[ \t]*\d{2,4})?', re.IGNORECASE),
    re.compile(r'All[ \t]+\d+[ \t]+by[ \t]+\d{1,2}/\d{1,2}/\d{2,4}', re.IGNORECASE),
    re.compile(r'(?<![\d.,])\d+[ \t]+in[ \t]+stock\b', re.IGNORECASE),
    re.compile(r'\bIn\s+Stock\b', re.IGNORECASE),
    re.compile(r'\bContact\s+Dealer\b', re.IGNORECASE),
    re.compile(r'\bBack-?order(?:ed)?\b', re.IGNORECASE),
    re.compile(r'\bLead\s+Time[:\s]+\d+\s+Days\b', re.IGNORECASE),
]


def extract_availability(text: str) -> Tuple[str, str]:
    """
    Pull the first availability phrase out of a fragment.

    The matched span is replaced by a single space so neighbouring words are
    not glued together.

    Returns:
        (availability, remaining_text); availability is "" when nothing matched
    """
    if not text:
        return "", text or ""

    for pattern in AVAILABILITY_PATTERNS:
        match = pattern.search(text)
        if match:
            remaining = text[:match.start()] + " " + text[match.end():]
            return " ".join(match.group(0).split()), remaining

    return "", text

"""
Tunable heuristics shared by the extraction pipeline.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ExtractionSettings:
    """Thresholds used by the parsers. Defaults match the observed dealer quote layouts."""

    # PDF: images painted outside this horizontal band are watermarks or margin art
    image_band_min_x: float = 40.0
    image_band_max_x: float = 550.0
    # PDF: fragments closer than this fraction of glyph height share a row
    row_height_ratio: float = 0.6
    row_fallback_tolerance: float = 8.0
    image_row_tolerance: float = 50.0
    max_block_span: float = 300.0
    max_pages: Optional[int] = None

    # Spreadsheets
    header_scan_rows: int = 25

    # Pricing
    min_amount: float = 0.01
    arithmetic_tolerance: float = 0.10
    total_gap_ratio: float = 1.10

    # AI fallback
    ai_text_limit: int = 30000

#!/usr/bin/env python3
"""
Plain-text quote parser.
Splits pasted quote text into item blocks and assembles line items from them.
"""

import re
import logging
from typing import List, Optional, Tuple

from .fields import ItemAssembler, truncate_at_summary
from .models import LineItem
from .pricing import PriceDisambiguator
from .settings import ExtractionSettings

logger = logging.getLogger(__name__)


class PlainTextParser:
    """Parser for quote text pasted from an email or web page."""

    def __init__(self, settings: Optional[ExtractionSettings] = None,
                 assembler: Optional[ItemAssembler] = None):
        self.settings = settings or ExtractionSettings()
        self.assembler = assembler or ItemAssembler(PriceDisambiguator(self.settings))

        # "1) 2 123-4567 ..." at the start of a line
        self.line_marker = re.compile(r'^[ \t]*(\d{1,4})\)[ \t]+', re.MULTILINE)

        # "$12.50 ea", "12.50 each", "$12 /ea"
        self.each_anchor = re.compile(
            r'(?:\$\s?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{2})?|(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2})'
            r'\s*(?:/\s*)?(?:ea\b\.?|each\b)',
            re.IGNORECASE,
        )

    def parse(self, text: str) -> List[LineItem]:
        """
        Extract line items from pasted text.

        Numbered lines are used when present; otherwise the text is segmented
        on per-unit price anchors. Prose without either yields no items.
        """
        if not text or not text.strip():
            return []

        blocks = self.split_numbered_blocks(text)
        strategy = "line numbers"
        if not blocks:
            blocks = self.split_anchor_blocks(text)
            strategy = "each-price anchors"

        if not blocks:
            logger.info("No line markers or per-unit prices found in text")
            return []

        items = []
        for index, (line_no, block) in enumerate(blocks, start=1):
            item = self.assembler.assemble(block, index, line_no=line_no)
            if item:
                items.append(item)

        logger.info(f"Parsed {len(items)} items from {len(blocks)} blocks using {strategy}")
        return items

    def split_numbered_blocks(self, text: str) -> List[Tuple[Optional[str], str]]:
        """One block per "N)" marker, running to the next marker or a summary line."""
        markers = list(self.line_marker.finditer(text))
        blocks = []
        for i, marker in enumerate(markers):
            end = markers[i + 1].start() if i + 1 < len(markers) else len(text)
            block = truncate_at_summary(text[marker.start():end]).strip()
            if block:
                blocks.append((marker.group(1), block))
        return blocks

    def split_anchor_blocks(self, text: str) -> List[Tuple[Optional[str], str]]:
        """One block per "amount each" anchor, from the previous anchor up to this one."""
        blocks = []
        start = 0
        for anchor in self.each_anchor.finditer(text):
            segment = text[start:anchor.end()]
            lines = [line for line in segment.split('\n')
                     if line.strip() and truncate_at_summary(line).strip()]
            if lines:
                blocks.append((None, '\n'.join(lines).strip()))
            start = anchor.end()
        return blocks


def parse_text(text: str, settings: Optional[ExtractionSettings] = None) -> List[LineItem]:
    """Convenience function to parse pasted quote text."""
    return PlainTextParser(settings).parse(text)

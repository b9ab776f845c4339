#!/usr/bin/env python3
"""
PDF layout reconstruction.

Dealer quote PDFs have no table structure: every glyph run is placed
independently and product photos are painted as separate XObjects. This
module rebuilds visual rows from glyph positions, replays the page's
graphics-state instructions to find where each image landed, attaches
images to the nearest row, and segments rows into item blocks with an
explicit state machine.
"""

import re
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import numpy as np

from .fields import ItemAssembler, is_part_number
from .models import DrawOp, Glyph, ItemBlock, LineItem, PlacedImage, TextRow
from .pricing import PriceDisambiguator
from .settings import ExtractionSettings

logger = logging.getLogger(__name__)


class PageSource(ABC):
    """One decoded PDF page, as supplied by the page-decoding collaborator."""

    @abstractmethod
    def glyphs(self) -> List[Glyph]:
        """Positioned text fragments of the page."""

    @abstractmethod
    def operations(self) -> List[DrawOp]:
        """The page's drawing instructions in stream order."""

    @abstractmethod
    def resolve_image(self, name: Any) -> Optional[bytes]:
        """Decode the raster object painted under name; may raise on bad data."""


# --- Affine transforms ---

IDENTITY = np.identity(3)


def to_matrix(a: float, b: float, c: float, d: float, e: float, f: float) -> np.ndarray:
    """PDF [a b c d e f] as a 3x3 row-vector transform."""
    return np.array([[a, b, 0.0], [c, d, 0.0], [e, f, 1.0]], dtype=float)


def compose(matrix: np.ndarray, ctm: np.ndarray) -> np.ndarray:
    """New CTM after a "cm" operator: matrix x ctm."""
    return matrix @ ctm


def translation(ctm: np.ndarray) -> Tuple[float, float]:
    return float(ctm[2, 0]), float(ctm[2, 1])


class ImagePlacementReplayer:
    """Replays save/restore/transform/paint instructions to anchor images."""

    SAVE = 'q'
    RESTORE = 'Q'
    TRANSFORM = 'cm'
    PAINT_OPERATORS = ('Do', 'EI')

    def replay(self, operations: Iterable[DrawOp],
               resolve_image: Callable[[Any], Optional[bytes]]) -> List[PlacedImage]:
        """
        Walk the instruction stream and record every painted image.

        Args:
            operations: Drawing instructions in stream order
            resolve_image: Decodes the object named by a paint instruction

        Returns:
            Decoded images with the page-space translation of the CTM at paint time
        """
        ctm = IDENTITY.copy()
        stack: List[np.ndarray] = []
        placed: List[PlacedImage] = []

        for op in operations:
            if op.operator == self.SAVE:
                stack.append(ctm.copy())
            elif op.operator == self.RESTORE:
                if stack:
                    ctm = stack.pop()
                else:
                    logger.debug("Unbalanced restore ignored")
            elif op.operator == self.TRANSFORM:
                if len(op.operands) != 6:
                    logger.debug(f"Malformed cm operands: {op.operands}")
                    continue
                try:
                    ctm = compose(to_matrix(*(float(v) for v in op.operands)), ctm)
                except (TypeError, ValueError):
                    logger.debug(f"Non-numeric cm operands: {op.operands}")
            elif op.operator in self.PAINT_OPERATORS and op.operands:
                data = self._decode(resolve_image, op.operands[-1])
                if data:
                    x, y = translation(ctm)
                    placed.append(PlacedImage(data=data, x=x, y=y))

        return placed

    @staticmethod
    def _decode(resolve_image, target) -> Optional[bytes]:
        try:
            return resolve_image(target)
        except Exception as e:
            logger.debug(f"Image {target!r} could not be decoded: {e}")
            return None


def filter_body_images(images: List[PlacedImage], settings: ExtractionSettings) -> List[PlacedImage]:
    """Drop watermarks and margin art painted outside the document body band."""
    return [img for img in images
            if settings.image_band_min_x <= img.x <= settings.image_band_max_x]


# --- Rows ---

def group_rows(glyphs: Iterable[Glyph], settings: ExtractionSettings) -> List[TextRow]:
    """
    Group glyph fragments into visual rows, top of page first.

    Consecutive fragments (by descending y) join the current row while they
    sit within row_height_ratio of the glyph height of its first fragment.
    """
    ordered = sorted((g for g in glyphs if g.text and g.text.strip()), key=lambda g: -g.y)

    rows: List[TextRow] = []
    current: Optional[TextRow] = None
    current_height = 0.0
    for glyph in ordered:
        if current is not None:
            height = max(current_height, glyph.height)
            tolerance = height * settings.row_height_ratio if height > 0 else settings.row_fallback_tolerance
            if abs(current.y - glyph.y) < tolerance:
                current.fragments.append((glyph.x, glyph.text.strip()))
                current_height = height
                continue
        current = TextRow(y=glyph.y, fragments=[(glyph.x, glyph.text.strip())])
        current_height = glyph.height
        rows.append(current)

    return [row for row in rows if row.text]


def attach_images(rows: List[TextRow], images: List[PlacedImage], tolerance: float):
    """Give each image to the closest row within tolerance; ties go to the earlier row."""
    for image in images:
        best: Optional[TextRow] = None
        best_distance = float('inf')
        for row in rows:
            distance = abs(row.y - image.y)
            if distance <= tolerance and distance < best_distance:
                best = row
                best_distance = distance
        if best is not None and image.data not in best.images:
            best.images.append(image.data)


# --- Block segmentation ---

class RowKind(Enum):
    HEADER = 'header'
    FOOTER = 'footer'
    PAGE_MARKER = 'page_marker'
    SUMMARY = 'summary'
    BLOCK_START = 'block_start'
    TEXT = 'text'


class SegmenterState(Enum):
    OUTSIDE_SECTION = 'outside-section'
    IN_SECTION = 'inside-section-no-block'
    ACCUMULATING = 'inside-section-accumulating'


SECTION_HEADER = re.compile(r'\bItems\s+In\s+Your\s+Order\b|\bItems\s+Ordered\b|\bOrder\s+Items\b', re.IGNORECASE)
FOOTER = re.compile(r'\bORDER\s+TOTAL\b|\bSUBTOTAL\b|\bSUMMARY\s+OF\s+CHARGES\b', re.IGNORECASE)
PAGE_MARKER = re.compile(r'^\s*Page\s+\d+(?:\s+of\s+\d+)?\s*$|\bPage\s+\d+\s+of\s+\d+\b', re.IGNORECASE)
# only consulted while a block is open
BLOCK_SUMMARY = re.compile(
    r'\bTotal\s+Tax\b|\bGRAND\s+TOTAL\b|\bShipping/Miscellaneous\b|\bPayment\s+Information\b|^\s*TAX\b',
    re.IGNORECASE,
)

NUMBERED_START = re.compile(r'^\s*\d{1,4}[).]\s+\d{1,5}\s+\S')
PART_START = re.compile(r'^\s*([A-Z0-9]{1,4}-[A-Z0-9]{3,8})(?![\w\-/])', re.IGNORECASE)
DIGIT_START = re.compile(r'^\s*(\d{6,8})(?![\w\-/.,])')


def is_block_start(text: str) -> bool:
    if NUMBERED_START.match(text):
        return True
    part = PART_START.match(text)
    if part and is_part_number(part.group(1)):
        return True
    return bool(DIGIT_START.match(text))


def classify_row(text: str, block_open: bool) -> RowKind:
    if SECTION_HEADER.search(text):
        return RowKind.HEADER
    if FOOTER.search(text):
        return RowKind.FOOTER
    if PAGE_MARKER.search(text):
        return RowKind.PAGE_MARKER
    if block_open and BLOCK_SUMMARY.search(text):
        return RowKind.SUMMARY
    if is_block_start(text):
        return RowKind.BLOCK_START
    return RowKind.TEXT


OUT, IN, ACC = SegmenterState.OUTSIDE_SECTION, SegmenterState.IN_SECTION, SegmenterState.ACCUMULATING

# (state, row kind) -> (action, next state); unlisted pairs are ignored in place
TRANSITIONS: Dict[Tuple[SegmenterState, RowKind], Tuple[str, SegmenterState]] = {
    (OUT, RowKind.HEADER): ('ignore', IN),
    (IN, RowKind.FOOTER): ('ignore', OUT),
    (IN, RowKind.PAGE_MARKER): ('ignore', OUT),
    (IN, RowKind.BLOCK_START): ('open', ACC),
    (ACC, RowKind.HEADER): ('close', IN),
    (ACC, RowKind.FOOTER): ('close', OUT),
    (ACC, RowKind.SUMMARY): ('close', OUT),
    (ACC, RowKind.PAGE_MARKER): ('close', OUT),
    (ACC, RowKind.BLOCK_START): ('open', ACC),
    (ACC, RowKind.TEXT): ('append', ACC),
}


class BlockSegmenter:
    """
    Segments one page's rows into item blocks.

    With implicit_section the page is treated as already inside the item
    section, and page-number rows flush the open block without ending it.
    """

    def __init__(self, settings: Optional[ExtractionSettings] = None, implicit_section: bool = False):
        self.settings = settings or ExtractionSettings()
        self.implicit_section = implicit_section
        self.state = IN if implicit_section else OUT
        self.block: Optional[ItemBlock] = None
        self.blocks: List[ItemBlock] = []
        self.saw_header = False

    def feed(self, row: TextRow):
        kind = classify_row(row.text, self.state is ACC)
        if kind is RowKind.HEADER:
            self.saw_header = True

        action, next_state = TRANSITIONS.get((self.state, kind), ('ignore', self.state))
        if kind is RowKind.PAGE_MARKER and self.implicit_section:
            next_state = IN

        if action == 'append' and self.block.start_y is not None \
                and abs(self.block.start_y - row.y) > self.settings.max_block_span:
            logger.debug(f"Row at y={row.y:.0f} too far from block start, closing block")
            action, next_state = 'close', IN

        if action == 'open':
            self._flush()
            self.block = ItemBlock(lines=[row.text], images=list(row.images), start_y=row.y)
        elif action == 'append':
            self.block.append(row.text, row.images)
        elif action == 'close':
            self._flush()

        self.state = next_state

    def finish(self) -> List[ItemBlock]:
        self._flush()
        if self.state is ACC:
            self.state = IN
        return self.blocks

    def _flush(self):
        if self.block is not None:
            self.blocks.append(self.block)
            self.block = None


# --- Page assembly ---

class PdfLayoutReconstructor:
    """Turns decoded PDF pages into line items via row and block reconstruction."""

    def __init__(self, settings: Optional[ExtractionSettings] = None,
                 assembler: Optional[ItemAssembler] = None):
        self.settings = settings or ExtractionSettings()
        self.assembler = assembler or ItemAssembler(PriceDisambiguator(self.settings))
        self.replayer = ImagePlacementReplayer()

    def reconstruct_rows(self, page: PageSource) -> List[TextRow]:
        """Rows of one page with their anchored images attached."""
        images = self.replayer.replay(page.operations(), page.resolve_image)
        body_images = filter_body_images(images, self.settings)
        if len(body_images) != len(images):
            logger.debug(f"Dropped {len(images) - len(body_images)} images outside the body band")

        rows = group_rows(page.glyphs(), self.settings)
        attach_images(rows, body_images, self.settings.image_row_tolerance)
        return rows

    def segment_rows(self, rows: List[TextRow]) -> List[ItemBlock]:
        """Item blocks of one page; headerless pages are segmented as all-section."""
        segmenter = BlockSegmenter(self.settings)
        for row in rows:
            segmenter.feed(row)
        blocks = segmenter.finish()
        if segmenter.saw_header:
            return blocks

        segmenter = BlockSegmenter(self.settings, implicit_section=True)
        for row in rows:
            segmenter.feed(row)
        return segmenter.finish()

    def parse_pages(self, pages: Iterable[PageSource]) -> Tuple[List[LineItem], str]:
        """
        Parse pages in document order.

        Returns:
            (items, full_text) where full_text is every reconstructed row of
            every page, one row per line
        """
        items: List[LineItem] = []
        row_texts: List[str] = []
        block_index = 0

        for page_number, page in enumerate(pages, start=1):
            if self.settings.max_pages and page_number > self.settings.max_pages:
                logger.info(f"Stopping after {self.settings.max_pages} pages")
                break
            try:
                rows = self.reconstruct_rows(page)
            except Exception as e:
                logger.warning(f"Could not reconstruct page {page_number}: {e}")
                continue

            row_texts.extend(row.text for row in rows)
            blocks = self.segment_rows(rows)
            page_items = 0
            for block in blocks:
                block_index += 1
                item = self.assembler.assemble(block.text, block_index, images=block.images)
                if item:
                    items.append(item)
                    page_items += 1
            logger.info(f"Page {page_number}: {len(rows)} rows, {len(blocks)} blocks, {page_items} items")

        return items, "\n".join(row_texts)

#!/usr/bin/env python3
"""
PDF page decoding built on pdfplumber.

Supplies each page's positioned words, its raw content-stream instructions
(tokenized with pdfminer, which pdfplumber is built on) and a resolver that
decodes named image XObjects to JPEG bytes with Pillow.
"""

import logging
from io import BytesIO
from typing import Any, Dict, Iterator, List, Optional

import pdfplumber
from pdfplumber.page import Page
from pdfminer.pdfinterp import PDFContentParser
from pdfminer.pdftypes import PDFStream, resolve1
from pdfminer.psparser import PSEOF, PSKeyword, PSLiteral, keyword_name, literal_name
from PIL import Image

from .models import DrawOp, Glyph
from .pdf_layout import PageSource

logger = logging.getLogger(__name__)

COLOR_MODES = {
    'DeviceRGB': 'RGB',
    'CalRGB': 'RGB',
    'DeviceGray': 'L',
    'CalGray': 'L',
    'DeviceCMYK': 'CMYK',
    # inline image abbreviations
    'RGB': 'RGB',
    'G': 'L',
    'CMYK': 'CMYK',
}
ICC_MODES = {1: 'L', 3: 'RGB', 4: 'CMYK'}
ENCODED_FORMATS = ('DCTDecode', 'DCT', 'JPXDecode')
JPEG_QUALITY = 80


def _name(value: Any) -> str:
    value = resolve1(value)
    if isinstance(value, PSLiteral):
        return literal_name(value)
    if isinstance(value, bytes):
        return value.decode('latin-1')
    return str(value) if value is not None else ""


def _color_mode(stream: PDFStream) -> str:
    space = resolve1(stream.get_any(('ColorSpace', 'CS')))
    if isinstance(space, list) and space:
        family = _name(space[0])
        if family == 'ICCBased' and len(space) > 1:
            profile = resolve1(space[1])
            components = resolve1(profile.get('N')) if isinstance(profile, PDFStream) else None
            if components in ICC_MODES:
                return ICC_MODES[components]
        space = space[0]
    mode = COLOR_MODES.get(_name(space))
    if mode is None:
        raise ValueError(f"Unsupported color space: {_name(space) or 'none'}")
    return mode


def decode_image_stream(stream: PDFStream) -> bytes:
    """
    Decode an image XObject and re-encode it as JPEG.

    Raises:
        ValueError: for color spaces or bit depths that cannot be rebuilt
        OSError: when Pillow cannot read the embedded data
    """
    filters = [_name(f) for f, _ in stream.get_filters()]
    data = stream.get_data()

    if filters and filters[-1] in ENCODED_FORMATS:
        image = Image.open(BytesIO(data))
    else:
        width = resolve1(stream.get_any(('Width', 'W')))
        height = resolve1(stream.get_any(('Height', 'H')))
        bits = resolve1(stream.get_any(('BitsPerComponent', 'BPC'), 8))
        if bits != 8:
            raise ValueError(f"Unsupported bit depth: {bits}")
        image = Image.frombytes(_color_mode(stream), (int(width), int(height)), data)

    if image.mode != 'RGB':
        image = image.convert('RGB')
    buffer = BytesIO()
    image.save(buffer, format='JPEG', quality=JPEG_QUALITY)
    return buffer.getvalue()


class PlumberPage(PageSource):
    """PageSource over a pdfplumber page."""

    def __init__(self, page: Page):
        self.page = page
        self._xobjects: Optional[Dict[str, Any]] = None

    def glyphs(self) -> List[Glyph]:
        """Words of the page; y is the PDF-space baseline (origin at the bottom)."""
        words = self.page.extract_words(keep_blank_chars=False, use_text_flow=False)
        return [
            Glyph(
                text=word['text'],
                x=float(word['x0']),
                y=float(self.page.height - word['bottom']),
                height=float(word['bottom'] - word['top']),
            )
            for word in words
        ]

    def operations(self) -> List[DrawOp]:
        """Tokenize the page content streams into operator/operand groups."""
        contents = self.page.page_obj.contents
        if not contents:
            return []

        parser = PDFContentParser(contents)
        ops: List[DrawOp] = []
        operands: List[Any] = []
        while True:
            try:
                _, obj = parser.nextobject()
            except PSEOF:
                break
            if isinstance(obj, PSKeyword):
                ops.append(DrawOp(operator=keyword_name(obj), operands=operands))
                operands = []
            else:
                operands.append(obj)
        return ops

    def resolve_image(self, name: Any) -> Optional[bytes]:
        """Decode the image painted by Do (a resource name) or EI (an inline stream)."""
        if isinstance(name, PDFStream):
            stream = name
        else:
            stream = resolve1(self._image_resources().get(_name(name)))
        if not isinstance(stream, PDFStream):
            return None
        if stream.get('Subtype') is not None and _name(stream.get('Subtype')) != 'Image':
            # form XObjects are not raster images
            return None
        return decode_image_stream(stream)

    def _image_resources(self) -> Dict[str, Any]:
        if self._xobjects is None:
            resources = resolve1(self.page.page_obj.resources) or {}
            self._xobjects = resolve1(resources.get('XObject')) or {}
        return self._xobjects


def iter_pdf_pages(pdf: pdfplumber.PDF) -> Iterator[PlumberPage]:
    """Pages of an open document in order."""
    for page in pdf.pages:
        yield PlumberPage(page)


def open_pdf(source) -> pdfplumber.PDF:
    """
    Open a PDF from a path, file-like object or raw bytes.

    Errors from unreadable files propagate to the caller unchanged.
    """
    if isinstance(source, (bytes, bytearray)):
        source = BytesIO(source)
    return pdfplumber.open(source)

#!/usr/bin/env python3
"""
Extraction Orchestrator
Routes a document to the matching deterministic parser and falls back to an
AI parser only when a PDF yields no items at all.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence

from .ai_parser import AIItemParser
from .fields import ItemAssembler
from .models import LineItem
from .pdf_extractor import iter_pdf_pages, open_pdf
from .pdf_layout import PdfLayoutReconstructor
from .pricing import PriceDisambiguator
from .settings import ExtractionSettings
from .table_parser import SpreadsheetParser, read_workbook_rows
from .text_parser import PlainTextParser

logger = logging.getLogger(__name__)

PDF_EXTENSIONS = ('.pdf',)
WORKBOOK_EXTENSIONS = ('.xlsx', '.xlsm')
TEXT_EXTENSIONS = ('.txt',)


class UnsupportedDocumentError(ValueError):
    """Raised for files the orchestrator has no parser for."""


class ExtractionOrchestrator:
    """
    Composition root for the extraction pipeline.

    Every parse call builds its own row and block accumulators, so one
    orchestrator may serve independent documents one after another.
    """

    def __init__(self, settings: Optional[ExtractionSettings] = None,
                 ai_parser: Optional[AIItemParser] = None):
        self.settings = settings or ExtractionSettings()
        self.ai_parser = ai_parser
        assembler = ItemAssembler(PriceDisambiguator(self.settings))
        self.text_parser = PlainTextParser(self.settings, assembler)
        self.spreadsheet_parser = SpreadsheetParser(self.settings, assembler)
        self.pdf_reconstructor = PdfLayoutReconstructor(self.settings, assembler)

    def parse_text(self, text: str) -> List[LineItem]:
        """Parse pasted quote text. No items is a valid result."""
        logger.info("📝 Parsing pasted text")
        items = self.text_parser.parse(text)
        logger.info(f"✅ Text parsing produced {len(items)} items")
        return items

    def parse_rows(self, rows: Sequence[Sequence[Any]]) -> List[LineItem]:
        """Parse an already-loaded grid of spreadsheet cells."""
        logger.info(f"📊 Parsing {len(rows)} spreadsheet rows")
        items = self.spreadsheet_parser.parse(rows)
        logger.info(f"✅ Spreadsheet parsing produced {len(items)} items")
        return items

    def parse_spreadsheet(self, source) -> List[LineItem]:
        """Parse the first worksheet of a workbook (path, file object or bytes)."""
        return self.parse_rows(read_workbook_rows(source))

    def parse_pdf(self, source) -> List[LineItem]:
        """
        Parse a PDF document.

        Args:
            source: Path, file-like object or raw bytes

        Returns:
            Items from the layout reconstructor; when there are none and an AI
            parser is configured, whatever that parser returns
        """
        logger.info("🔍 Reconstructing PDF page layout")
        with open_pdf(source) as pdf:
            items, full_text = self.pdf_reconstructor.parse_pages(iter_pdf_pages(pdf))

        if items:
            logger.info(f"✅ Layout reconstruction produced {len(items)} items")
            return items

        if self.ai_parser is None:
            logger.info("No items found in PDF and no AI parser configured")
            return []

        logger.info("🤖 No items found by layout reconstruction, trying AI parser")
        # AI items are accepted as returned, including zero prices
        return self.ai_parser.parse(full_text)

    def parse_file(self, path) -> List[LineItem]:
        """
        Parse a document on disk, choosing the parser by file extension.

        Raises:
            UnsupportedDocumentError: for extensions without a parser
        """
        path = Path(path)
        suffix = path.suffix.lower()
        logger.info(f"🚀 Parsing {path.name}")

        if suffix in PDF_EXTENSIONS:
            return self.parse_pdf(str(path))
        if suffix in WORKBOOK_EXTENSIONS:
            return self.parse_spreadsheet(str(path))
        if suffix in TEXT_EXTENSIONS:
            return self.parse_text(path.read_text(encoding='utf-8'))

        raise UnsupportedDocumentError(f"Unsupported document type: {suffix or path.name}")

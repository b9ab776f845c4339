"""
Quote Parser

Extracts normalized line items (quantity, part number, description, weight,
unit price, availability and anchored images) from supplier quotes delivered
as PDFs, spreadsheets or pasted text.
"""

__version__ = "1.0.0"

from .models import LineItem
from .settings import ExtractionSettings
from .orchestrator import ExtractionOrchestrator, UnsupportedDocumentError
from .text_parser import PlainTextParser, parse_text
from .table_parser import SpreadsheetParser, parse_spreadsheet
from .pdf_layout import PdfLayoutReconstructor
from .pricing import PriceDisambiguator, disambiguate_price
from .units import normalize_weight

__all__ = [
    "LineItem",
    "ExtractionSettings",
    "ExtractionOrchestrator",
    "UnsupportedDocumentError",
    "PlainTextParser",
    "parse_text",
    "SpreadsheetParser",
    "parse_spreadsheet",
    "PdfLayoutReconstructor",
    "PriceDisambiguator",
    "disambiguate_price",
    "normalize_weight",
]

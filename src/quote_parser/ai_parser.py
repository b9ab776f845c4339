"""
Optional LLM-based line item parsing, used only when the deterministic PDF
path finds nothing.
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from .models import DEFAULT_DESCRIPTION, LineItem

logger = logging.getLogger(__name__)

ITEM_SCHEMA = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "qty": {"type": "number"},
                    "partNo": {"type": "string"},
                    "desc": {"type": "string"},
                    "weight": {"type": "number"},
                    "unitPrice": {"type": "number"},
                },
            },
        },
    },
}

PROMPT = """You are an expert Data Parsing Assistant. Your job is to extract tabular line item data from the provided document text (OCR output).

The text may contain an Invoice, Quote, or Packing List.
Identify the main table of items.

Data Cleanliness Rules:
- Description: Must NOT contain weight (e.g. 0.1 lbs), availability (e.g. 8 in stock), dates (e.g. Jan 02), or status (e.g. Non-returnable).
- Unit Price: Identify the single unit price (often marked with 'ea'). Do not confuse it with the Total line price.

Return a JSON object with an "items" array. Each item must have:
- qty: number (default 1)
- partNo: string (Look for Part Number, SKU like 123-4567)
- desc: string (Clean description only)
- weight: number (in LBS. If missing, use 0)
- unitPrice: number (Price per item, no currency symbols)

Schema:
{schema}

Document Text to Parse:
\"\"\"
{text}
\"\"\""""


def _number(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def coerce_record(record: Dict[str, Any], index: int) -> LineItem:
    """
    Build a LineItem from a loosely-typed AI record.

    Missing fields are defaulted; the price is taken as given, including 0.
    """
    quantity = int(_number(record.get("qty"), 1)) or 1
    return LineItem(
        part_no=str(record.get("partNo") or f"ITEM-{index}"),
        description=str(record.get("desc") or DEFAULT_DESCRIPTION),
        quantity=quantity,
        weight=_number(record.get("weight")),
        unit_price=_number(record.get("unitPrice")),
        availability=str(record.get("availability") or ""),
    )


class AIItemParser(ABC):
    """Base class for AI fallback parsers."""

    def __init__(self, text_limit: int = 30000):
        self.text_limit = text_limit

    @abstractmethod
    def request_items(self, text: str) -> List[Dict[str, Any]]:
        """Ask the model for raw item records."""
        pass

    def parse(self, text: str) -> List[LineItem]:
        """
        Parse document text into line items.

        Args:
            text: Reconstructed document text; truncated to text_limit

        Returns:
            Items in model order; an empty list when the call fails
        """
        if not text or not text.strip():
            return []
        try:
            records = self.request_items(text[:self.text_limit])
        except Exception as e:
            logger.error(f"AI parsing error: {e}")
            return []

        items = [coerce_record(record, index)
                 for index, record in enumerate(records, start=1)
                 if isinstance(record, dict)]
        logger.info(f"AI parser returned {len(items)} items")
        return items


class OpenAIItemParser(AIItemParser):
    """Parse document text using OpenAI GPT models."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", text_limit: int = 30000):
        """
        Initialize OpenAI parser.

        Args:
            api_key: OpenAI API key
            model: Model name to use
            text_limit: Maximum characters of document text sent to the model
        """
        super().__init__(text_limit)
        try:
            import openai
        except ImportError:
            raise ImportError("OpenAI library required. Install with: pip install quote-item-parser[ai]")
        self.client = openai.OpenAI(api_key=api_key)
        self.model = model

    def request_items(self, text: str) -> List[Dict[str, Any]]:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": "You extract purchasable line items from dealer quotes and invoices."},
                {"role": "user", "content": PROMPT.format(schema=json.dumps(ITEM_SCHEMA, indent=2), text=text)},
            ],
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content
        if not content:
            return []
        parsed = json.loads(content)
        if isinstance(parsed, dict):
            parsed = parsed.get("items", [])
        return parsed if isinstance(parsed, list) else []

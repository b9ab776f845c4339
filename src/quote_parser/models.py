"""
Data models for the Quote Parser.
"""

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


DEFAULT_DESCRIPTION = "CAT COMPONENT"


@dataclass
class LineItem:
    """Represents a single purchasable line item extracted from a document."""
    part_no: str
    description: str = DEFAULT_DESCRIPTION
    quantity: int = 1
    weight: float = 0.0
    unit_price: float = 0.0
    availability: str = ""
    images: List[bytes] = field(default_factory=list)
    line_no: Optional[str] = None
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable view using the quote tool's field names."""
        return {
            "lineNo": self.line_no,
            "qty": self.quantity,
            "partNo": self.part_no,
            "desc": self.description,
            "weight": round(self.weight, 3),
            "unitPrice": self.unit_price,
            "availability": self.availability,
            "notes": self.notes,
            "images": [base64.b64encode(img).decode("ascii") for img in self.images],
        }


@dataclass
class Glyph:
    """A positioned text fragment from a PDF page (PDF user space, y grows upward)."""
    text: str
    x: float
    y: float
    height: float = 0.0


@dataclass
class PlacedImage:
    """A decoded raster image and the page-space anchor it was painted at."""
    data: bytes
    x: float
    y: float


@dataclass
class DrawOp:
    """One content-stream instruction: operator name plus raw operands."""
    operator: str
    operands: List[Any] = field(default_factory=list)


@dataclass
class TextRow:
    """Glyph fragments sharing a baseline, plus the images anchored near it."""
    y: float
    fragments: List[Tuple[float, str]] = field(default_factory=list)
    images: List[bytes] = field(default_factory=list)

    @property
    def text(self) -> str:
        ordered = sorted(self.fragments, key=lambda frag: frag[0])
        return " ".join(t for _, t in ordered if t).strip()


@dataclass
class ItemBlock:
    """Contiguous text (and images) believed to describe exactly one item."""
    lines: List[str] = field(default_factory=list)
    images: List[bytes] = field(default_factory=list)
    start_y: Optional[float] = None

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def append(self, line: str, images: Optional[List[bytes]] = None):
        self.lines.append(line)
        for img in images or []:
            if img not in self.images:
                self.images.append(img)


@dataclass
class ColumnMapping:
    """Semantic role -> column index, inferred from a sheet's header row."""
    header_row: int
    columns: Dict[str, int] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return "part" in self.columns and "price" in self.columns

    def get(self, role: str) -> Optional[int]:
        return self.columns.get(role)

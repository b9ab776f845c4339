#!/usr/bin/env python3
"""
Example usage of the Quote Parser
Demonstrates the text and spreadsheet paths with sample data.
"""

import json
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from quote_parser import ExtractionOrchestrator


def create_sample_quote_text():
    """Sample dealer quote as pasted from an order confirmation email."""
    return """
    AMERICAN IRON LLC
    Items In Your Order
    1) 2 123-4567 GASKET KIT $150.00
    Replaces Part # 999-0001
    2) 1 9A-1234 FILTER $50.00
    In Stock, 5.5 lbs
    3) 4 245-8812 SEAL O-RING $3.10 ea $12.40
    All 4 by Jan 15, 2026
    SUMMARY OF CHARGES
    ORDER TOTAL $212.40
    """


def create_sample_rows():
    """Sample worksheet rows with a header line."""
    return [
        ["Dealer Quote", None, None, None, None],
        ["Qty", "Part Number", "Description", "Unit Price", "Weight"],
        [3, "AB-100", "Bolt", "$2.50", "0.2 lbs"],
        [1, "AB-200", "Washer kit", 0, None],
        [10, "CD-300", "Hose clamp", 1.75, "0.1 kg"],
    ]


def demonstrate_text_parser(orchestrator):
    print("=" * 60)
    print("DEMONSTRATION: Pasted Text")
    print("=" * 60)

    items = orchestrator.parse_text(create_sample_quote_text())
    for item in items:
        print(f"{item.line_no}) {item.quantity} x {item.part_no} "
              f"{item.description} @ ${item.unit_price:.2f} "
              f"[{item.availability or 'n/a'}] {item.notes}")
    print(json.dumps([item.to_dict() for item in items], indent=2))


def demonstrate_spreadsheet_parser(orchestrator):
    print("=" * 60)
    print("DEMONSTRATION: Spreadsheet Rows")
    print("=" * 60)

    items = orchestrator.parse_rows(create_sample_rows())
    for item in items:
        print(f"{item.quantity} x {item.part_no} {item.description} "
              f"@ ${item.unit_price:.2f}, {item.weight:.3f} lb")


def main():
    orchestrator = ExtractionOrchestrator()
    demonstrate_text_parser(orchestrator)
    demonstrate_spreadsheet_parser(orchestrator)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Tests for per-unit price disambiguation.
"""

import sys
import unittest
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from quote_parser.pricing import (
    PRICE_RULES,
    PriceContext,
    PriceDisambiguator,
    disambiguate_price,
    extract_amounts,
    extract_per_unit_amounts,
    split_extended_price,
)
from quote_parser.settings import ExtractionSettings


class TestAmountExtraction(unittest.TestCase):
    """Test cases for currency amount detection."""

    def test_currency_amounts_in_order(self):
        self.assertEqual(extract_amounts("$10.00 then 50.00 and $1,250.00"), [10.0, 50.0, 1250.0])

    def test_part_numbers_and_weights_are_not_amounts(self):
        self.assertEqual(extract_amounts("123-4567 FILTER 5.5 lbs 9A-1234 qty 3"), [])

    def test_two_decimal_weights_are_not_amounts(self):
        self.assertEqual(extract_amounts("$150.00 Weight: 12.00 lbs"), [150.0])
        self.assertEqual(extract_amounts("2.50 kg 4.00lb $9.99"), [9.99])

    def test_whole_dollars_need_symbol(self):
        self.assertEqual(extract_amounts("$45 and 45"), [45.0])

    def test_duplicates_and_tiny_amounts_dropped(self):
        self.assertEqual(extract_amounts("$20.00 ea $20.00 $0.00"), [20.0])

    def test_per_unit_labels(self):
        self.assertEqual(extract_per_unit_amounts("$12.50 ea $25.00"), [12.5])
        self.assertEqual(extract_per_unit_amounts("2 @ $3.10"), [3.1])
        self.assertEqual(extract_per_unit_amounts("4.00 /each"), [4.0])
        self.assertEqual(extract_per_unit_amounts("$25.00 total"), [])


class TestPriceDisambiguator(unittest.TestCase):
    """Test cases for the ordered price rules."""

    def setUp(self):
        self.disambiguator = PriceDisambiguator()

    def test_arithmetic_match(self):
        self.assertEqual(self.disambiguator.disambiguate("$10.00 $50.00", 5), 10.0)

    def test_explicit_marker_beats_max(self):
        self.assertEqual(self.disambiguator.disambiguate("$10.00 ea $50.00", 1), 10.0)

    def test_single_unit_takes_largest(self):
        self.assertEqual(self.disambiguator.disambiguate("$4.00 core $60.00", 1), 60.0)

    def test_lone_amount_split_over_quantity(self):
        self.assertEqual(self.disambiguator.disambiguate("GASKET KIT $150.00", 2), 75.0)
        self.assertEqual(self.disambiguator.disambiguate("$100.00", 3), 33.33)

    def test_thousands_separators(self):
        self.assertEqual(self.disambiguator.disambiguate("$1,250.00 $2,500.00", 2), 1250.0)

    def test_large_gap_means_extended_total(self):
        self.assertEqual(self.disambiguator.disambiguate("$40.00 $100.00", 3), 40.0)

    def test_close_amounts_fall_back_to_largest(self):
        self.assertEqual(self.disambiguator.disambiguate("$100.00 $105.00", 3), 105.0)

    def test_no_amounts(self):
        self.assertEqual(self.disambiguator.disambiguate("", 1), 0.0)
        self.assertEqual(self.disambiguator.disambiguate("call for pricing", 4), 0.0)
        self.assertEqual(self.disambiguator.disambiguate("$0.00", 1), 0.0)

    def test_never_negative(self):
        fragments = ["-$5.00", "$-3.00 $2.00", "credit -12.50", "$0.01", "(USD) 99.99 ea"]
        for text in fragments:
            for quantity in (0, 1, 7):
                with self.subTest(text=text, quantity=quantity):
                    self.assertGreaterEqual(self.disambiguator.disambiguate(text, quantity), 0.0)

    def test_tiny_lone_total_keeps_face_value(self):
        self.assertEqual(self.disambiguator.disambiguate("$0.01", 5), 0.01)
        self.assertEqual(self.disambiguator.disambiguate("$0.02 widget", 10), 0.02)

    def test_weight_is_not_taken_as_price(self):
        self.assertEqual(self.disambiguator.disambiguate("$150.00\nWeight: 12.00 lbs", 2), 75.0)

    def test_quantity_clamped_to_one(self):
        self.assertEqual(self.disambiguator.disambiguate("$5.00 $9.00", 0), 9.0)

    def test_custom_tolerance(self):
        strict = PriceDisambiguator(ExtractionSettings(arithmetic_tolerance=0.001))
        # 3 x 33.33 = 99.99 is only a match under the default tolerance
        self.assertEqual(self.disambiguator.disambiguate("$33.33 $35.00 $100.00", 3), 33.33)
        self.assertEqual(strict.disambiguate("$33.33 $35.00 $100.00", 3), 35.0)

    def test_rules_can_be_replaced(self):
        largest_only = PriceDisambiguator(rules=[PRICE_RULES[-1]])
        self.assertEqual(largest_only.disambiguate("$10.00 ea $50.00", 1), 50.0)

    def test_convenience_function(self):
        self.assertEqual(disambiguate_price("2 @ $12.50 $25.00", 2), 12.5)


class TestPriceRules(unittest.TestCase):
    """Each rule in isolation."""

    def context(self, amounts, quantity, per_unit=()):
        return PriceContext(amounts=list(amounts), per_unit=list(per_unit),
                            quantity=quantity, settings=ExtractionSettings())

    def rule(self, name):
        return dict(PRICE_RULES)[name]

    def test_rule_order(self):
        self.assertEqual([name for name, _ in PRICE_RULES], [
            "explicit_unit_price",
            "single_unit_quantity",
            "arithmetic_match",
            "single_extended_amount",
            "extended_total_gap",
            "largest_amount",
        ])

    def test_explicit_unit_price_needs_label(self):
        self.assertIsNone(self.rule("explicit_unit_price")(self.context([10.0, 50.0], 5)))
        self.assertEqual(self.rule("explicit_unit_price")(self.context([10.0, 50.0], 5, [50.0])), 50.0)

    def test_arithmetic_match_skips_single_unit(self):
        self.assertIsNone(self.rule("arithmetic_match")(self.context([10.0, 10.0], 1)))

    def test_single_extended_amount_defers_when_split_rounds_away(self):
        rule = self.rule("single_extended_amount")
        self.assertIsNone(rule(self.context([0.01], 5)))
        self.assertEqual(rule(self.context([0.05], 2)), 0.03)

    def test_gap_rule_needs_two_amounts(self):
        self.assertIsNone(self.rule("extended_total_gap")(self.context([10.0], 2)))


class TestSplitExtendedPrice(unittest.TestCase):

    def test_rounds_half_up(self):
        self.assertEqual(split_extended_price(0.05, 2), 0.03)
        self.assertEqual(split_extended_price(10.0, 4), 2.5)


if __name__ == '__main__':
    unittest.main()

#!/usr/bin/env python3
"""
Tests for the command line interface.
"""

import json
import os
import sys
import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from quote_parser.cli import cli

SCENARIO_TEXT = (
    "1) 2 123-4567 GASKET KIT $150.00\nmore notes\n"
    "2) 1 9A-1234 FILTER $50.00\nIn Stock, 5.5 lbs"
)


class TestCli(unittest.TestCase):
    """Test cases for the quote-parser commands."""

    def setUp(self):
        self.runner = CliRunner()

    def test_text_command_prints_json(self):
        result = self.runner.invoke(cli, ['text'], input=SCENARIO_TEXT)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"partNo": "123-4567"', result.output)
        self.assertIn('"unitPrice": 75.0', result.output)

    def test_parse_writes_output_file(self):
        with self.runner.isolated_filesystem():
            Path("quote.txt").write_text(SCENARIO_TEXT, encoding="utf-8")
            result = self.runner.invoke(cli, ['parse', 'quote.txt', '-o', 'items.json'])
            self.assertEqual(result.exit_code, 0, result.output)

            data = json.loads(Path("items.json").read_text(encoding="utf-8"))
            self.assertEqual([item["partNo"] for item in data], ["123-4567", "9A-1234"])
            self.assertEqual(data[1]["availability"], "In Stock")

    def test_unsupported_file_aborts(self):
        with tempfile.NamedTemporaryFile(suffix='.docx', delete=False) as f:
            f.write(b"not a quote")
        try:
            result = self.runner.invoke(cli, ['parse', f.name])
        finally:
            os.unlink(f.name)
        self.assertNotEqual(result.exit_code, 0)

    def test_ai_without_key_still_parses(self):
        with self.runner.isolated_filesystem():
            Path("quote.txt").write_text(SCENARIO_TEXT, encoding="utf-8")
            result = self.runner.invoke(cli, ['parse', 'quote.txt', '--ai'], env={'OPENAI_API_KEY': None})
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"partNo": "9A-1234"', result.output)


if __name__ == '__main__':
    unittest.main()

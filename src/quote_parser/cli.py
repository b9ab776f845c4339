#!/usr/bin/env python3
"""
Quote Parser CLI
Extracts line items from quote PDFs, workbooks and pasted text.
"""

import json
import logging
import os
import sys
from typing import List, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .models import LineItem
from .orchestrator import ExtractionOrchestrator, UnsupportedDocumentError
from .settings import ExtractionSettings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

console = Console(stderr=True)


def build_ai_parser(enabled: bool, settings: ExtractionSettings):
    """OpenAI fallback parser when requested and a key is available."""
    if not enabled:
        return None
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        logger.warning("⚠️ --ai requested but OPENAI_API_KEY is not set, AI fallback disabled")
        return None
    from .ai_parser import OpenAIItemParser
    return OpenAIItemParser(api_key, text_limit=settings.ai_text_limit)


def render_summary(items: List[LineItem]):
    """Print a short table of the extracted items."""
    if not items:
        console.print("[yellow]No line items found. Check that the document lists priced items.[/yellow]")
        return

    table = Table(title=f"{len(items)} line items")
    table.add_column("#", justify="right")
    table.add_column("Qty", justify="right")
    table.add_column("Part No")
    table.add_column("Description")
    table.add_column("Weight (lb)", justify="right")
    table.add_column("Unit Price", justify="right")
    table.add_column("Availability")

    for index, item in enumerate(items, start=1):
        table.add_row(
            item.line_no or str(index),
            str(item.quantity),
            escape(item.part_no),
            escape(item.description),
            f"{item.weight:.2f}" if item.weight else "",
            f"${item.unit_price:,.2f}",
            escape(item.availability),
        )
    console.print(table)


def emit(items: List[LineItem], output: Optional[str]):
    result = [item.to_dict() for item in items]
    if output:
        with open(output, 'w', encoding='utf-8') as f:
            json.dump(result, f, indent=2, ensure_ascii=False)
        logger.info(f"✅ Results saved to: {output}")
    else:
        click.echo(json.dumps(result, indent=2, ensure_ascii=False))


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--max-pages', type=int, default=None, help='Stop reading PDFs after this many pages')
@click.pass_context
def cli(ctx, verbose: bool, max_pages: Optional[int]):
    """Extract purchasable line items from supplier quotes."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    ctx.ensure_object(dict)
    ctx.obj['settings'] = ExtractionSettings(max_pages=max_pages)


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(), help='Output JSON file path')
@click.option('--ai/--no-ai', default=False, help='Use the OpenAI fallback when a PDF yields no items')
@click.pass_context
def parse(ctx, file_path: str, output: Optional[str], ai: bool):
    """Parse a PDF, .xlsx/.xlsm workbook or .txt file."""
    settings = ctx.obj['settings']
    try:
        orchestrator = ExtractionOrchestrator(settings, build_ai_parser(ai, settings))
        items = orchestrator.parse_file(file_path)
    except UnsupportedDocumentError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()
    except Exception as e:
        logger.error(f"❌ Parsing failed: {e}")
        click.echo(f"Error parsing {file_path}: {e}", err=True)
        raise click.Abort()

    render_summary(items)
    emit(items, output)


@cli.command()
@click.option('--output', '-o', type=click.Path(), help='Output JSON file path')
@click.pass_context
def text(ctx, output: Optional[str]):
    """Parse quote text read from standard input."""
    content = sys.stdin.read()
    items = ExtractionOrchestrator(ctx.obj['settings']).parse_text(content)
    render_summary(items)
    emit(items, output)


if __name__ == '__main__':
    cli()

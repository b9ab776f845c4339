#!/usr/bin/env python3
"""
Per-unit price disambiguation.

A quote fragment usually carries several currency figures: the unit price,
the extended price, and sometimes discounts or core charges. Given the
quantity already read for the block, the rules below pick the single figure
most likely to be the price of one unit. They are tried strictly in order;
the first rule that produces a value wins.
"""

import re
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Callable, List, Optional, Tuple

from .settings import ExtractionSettings
from .units import WEIGHT_UNITS

logger = logging.getLogger(__name__)

_NUMBER = r'\d{1,3}(?:,\d{3})+(?:\.\d{2})?|\d+\.\d{2}|\d+'

# a number followed by a mass unit is a weight, never an amount
AMOUNT_PATTERN = re.compile(
    r'(?<![\w.])(?P<symbol>\$\s?)?(?P<number>' + _NUMBER + r')(?!\d|[.,]\d)'
    r'(?!\s*(?i:' + WEIGHT_UNITS + r')(?![A-Za-z]))'
)

PER_UNIT_PATTERN = re.compile(
    r'(?<![\w.])\$?\s?(?P<each>' + _NUMBER + r')\s*(?:/\s*)?(?:ea\b\.?|each\b)'
    r'|@\s*\$?\s?(?P<at>' + _NUMBER + r')(?!\d|[.,]\d)',
    re.IGNORECASE,
)

FLOAT_TOLERANCE = 1e-6


def _to_float(number: str) -> Optional[float]:
    try:
        return float(Decimal(number.replace(',', '')))
    except (InvalidOperation, ValueError):
        logger.debug(f"Invalid amount: {number}")
        return None


def extract_amounts(text: str, min_amount: float = 0.01) -> List[float]:
    """
    Find currency-formatted amounts in document order, without duplicates.

    An amount counts as currency when it carries a dollar sign or exactly two
    decimals and is not followed by a mass unit, so weights ("5.5 lbs",
    "12.00 lbs") and part numbers ("123-4567") are skipped.
    """
    amounts: List[float] = []
    for match in AMOUNT_PATTERN.finditer(text or ""):
        number = match.group('number')
        if not match.group('symbol') and '.' not in number:
            continue
        value = _to_float(number)
        if value is None or value < min_amount:
            continue
        if not any(abs(value - seen) < FLOAT_TOLERANCE for seen in amounts):
            amounts.append(value)
    return amounts


def extract_per_unit_amounts(text: str) -> List[float]:
    """Amounts explicitly labeled as a unit price ("$12.50 ea", "@ $12.50")."""
    labeled = []
    for match in PER_UNIT_PATTERN.finditer(text or ""):
        value = _to_float(match.group('each') or match.group('at'))
        if value is not None:
            labeled.append(value)
    return labeled


def split_extended_price(total: float, quantity: int) -> float:
    """Unit price of an extended total, rounded half-up to cents."""
    unit = Decimal(str(total)) / Decimal(quantity)
    return float(unit.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


@dataclass
class PriceContext:
    amounts: List[float]
    per_unit: List[float]
    quantity: int
    settings: ExtractionSettings


PriceRule = Callable[[PriceContext], Optional[float]]


def _explicit_unit_price(ctx: PriceContext) -> Optional[float]:
    for labeled in ctx.per_unit:
        for amount in ctx.amounts:
            if abs(labeled - amount) < FLOAT_TOLERANCE:
                return amount
    return None


def _single_unit_quantity(ctx: PriceContext) -> Optional[float]:
    # with one unit ordered, unit and extended price coincide
    if ctx.quantity == 1:
        return max(ctx.amounts)
    return None


def _arithmetic_match(ctx: PriceContext) -> Optional[float]:
    if ctx.quantity <= 1:
        return None
    for i, unit in enumerate(ctx.amounts):
        for j, total in enumerate(ctx.amounts):
            if i != j and abs(unit * ctx.quantity - total) <= ctx.settings.arithmetic_tolerance:
                return unit
    return None


def _single_extended_amount(ctx: PriceContext) -> Optional[float]:
    # a lone unlabeled figure on a multi-unit line is the line total
    if ctx.quantity > 1 and len(ctx.amounts) == 1:
        unit = split_extended_price(ctx.amounts[0], ctx.quantity)
        # a total too small to split keeps its face value
        if unit >= ctx.settings.min_amount:
            return unit
    return None


def _extended_total_gap(ctx: PriceContext) -> Optional[float]:
    if len(ctx.amounts) < 2:
        return None
    largest, second = sorted(ctx.amounts, reverse=True)[:2]
    if largest > second * ctx.settings.total_gap_ratio:
        return second
    return None


def _largest_amount(ctx: PriceContext) -> Optional[float]:
    return max(ctx.amounts)


# single_extended_amount resolves a lone extended total on a multi-unit line
# to its unit price before the gap and largest-amount rules get a chance
PRICE_RULES: List[Tuple[str, PriceRule]] = [
    ("explicit_unit_price", _explicit_unit_price),
    ("single_unit_quantity", _single_unit_quantity),
    ("arithmetic_match", _arithmetic_match),
    ("single_extended_amount", _single_extended_amount),
    ("extended_total_gap", _extended_total_gap),
    ("largest_amount", _largest_amount),
]


class PriceDisambiguator:
    """Selects the per-unit price of a fragment using the ordered PRICE_RULES."""

    def __init__(self, settings: Optional[ExtractionSettings] = None,
                 rules: Optional[List[Tuple[str, PriceRule]]] = None):
        self.settings = settings or ExtractionSettings()
        self.rules = rules if rules is not None else PRICE_RULES

    def disambiguate(self, text: str, quantity: int = 1) -> float:
        """
        Pick the per-unit price for a fragment.

        Args:
            text: Fragment that may contain several currency amounts
            quantity: Quantity already determined for the fragment

        Returns:
            Best-guess unit price, or 0.0 when the fragment has no usable amount
        """
        amounts = extract_amounts(text, self.settings.min_amount)
        if not amounts:
            return 0.0

        ctx = PriceContext(
            amounts=amounts,
            per_unit=extract_per_unit_amounts(text),
            quantity=max(1, int(quantity or 1)),
            settings=self.settings,
        )
        for name, rule in self.rules:
            price = rule(ctx)
            if price is not None:
                logger.debug(f"Price {price} chosen by {name} from {amounts} (qty {ctx.quantity})")
                return price
        return 0.0


def disambiguate_price(text: str, quantity: int = 1,
                       settings: Optional[ExtractionSettings] = None) -> float:
    """Convenience wrapper around PriceDisambiguator."""
    return PriceDisambiguator(settings).disambiguate(text, quantity)

"""Display formatting for costs, quantities and costing results.

This is the only place values are rounded. Rounding uses ROUND_HALF_UP at
the configured precision (currency: 2 places, quantity: 3 places).
"""

from decimal import Decimal
from typing import List, Optional, Union

from .config import get_config
from .constants import CURRENCY_SYMBOLS
from .decimal_utils import quantize, to_decimal


def cost_to_string(value: Union[Decimal, float, int, str, None], places: Optional[int] = None) -> str:
    """
    Convert a cost value to a fixed-point string.

    Args:
        value: Cost value (Decimal, float, int, str, or None)
        places: Decimal places, defaults to the configured currency precision

    Returns:
        String formatted as "12.34". Returns "0.00" if value is None.

    Examples:
        >>> cost_to_string(Decimal("12.345"))
        '12.35'
        >>> cost_to_string(None)
        '0.00'
    """
    if places is None:
        places = get_config().currency_decimal_places
    if value is None:
        value = Decimal("0")
    return f"{quantize(to_decimal(value), places):f}"


def format_cost(
    amount: Union[Decimal, float, int, str, None],
    currency: Optional[str] = None,
    precision: Optional[int] = None,
) -> str:
    """
    Format a money amount with its currency symbol.

    Unknown currency codes are written as a prefix ("CHF 1.50").

    Examples:
        >>> format_cost(Decimal("0.6941"), "GBP")
        '£0.69'
    """
    code = (currency or get_config().default_currency).upper()
    text = cost_to_string(amount, precision)
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{code} {text}"
    if text.startswith("-"):
        return f"-{symbol}{text[1:]}"
    return f"{symbol}{text}"


def format_quantity(quantity: Union[Decimal, float, int, str], unit=None, precision: Optional[int] = None) -> str:
    """
    Format a quantity, dropping trailing zeros after rounding.

    Examples:
        >>> format_quantity(Decimal("500.000"), "g")
        '500 g'
        >>> format_quantity(Decimal("0.33333"), "cup")
        '0.333 cup'
    """
    if precision is None:
        precision = get_config().quantity_decimal_places
    rounded = quantize(to_decimal(quantity), precision)
    text = f"{rounded:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    if unit is None:
        return text
    return f"{text} {unit}"


def format_cost_breakdown(breakdown, recipe_name: Optional[str] = None) -> str:
    """
    Render a RecipeCostBreakdown as plain text.

    Lines are listed in costing order, then sub-recipe lines, section
    subtotals, the total, the cost per output unit and any line errors.
    """
    currency = breakdown.currency
    lines: List[str] = []
    lines.append(f"Recipe: {recipe_name if recipe_name else breakdown.recipe_id}")

    for line in breakdown.lines:
        lines.append(
            f"  {line.ingredient_name}: {format_quantity(line.quantity, line.unit)} "
            f"= {format_cost(line.cost, currency)}"
        )

    for sub_line in breakdown.sub_recipe_lines:
        lines.append(
            f"  {sub_line.recipe_name} (recipe): {format_quantity(sub_line.quantity, sub_line.unit)} "
            f"= {format_cost(sub_line.cost, currency)}"
        )

    for section_id, subtotal in breakdown.section_totals.items():
        lines.append(f"  Section {section_id} subtotal: {format_cost(subtotal, currency)}")

    lines.append(f"Total: {format_cost(breakdown.total_cost, currency)}")
    lines.append(
        f"Per {breakdown.yield_unit}: {format_cost(breakdown.cost_per_output_unit, currency)}"
    )

    for error in breakdown.line_errors:
        lines.append(f"  ! Line {error.position + 1}: {error.message}")
    if breakdown.skipped_count:
        lines.append(f"  Skipped {breakdown.skipped_count} incomplete line(s)")

    return "\n".join(lines)


def format_combined_result(result) -> str:
    """Render a CombineResult as a shopping-list style text block."""
    currency = result.currency
    lines: List[str] = []

    for line in result.lines:
        text = f"{line.ingredient_name}: {format_quantity(line.quantity, line.unit)}"
        for quantity, unit in line.unconverted:
            text += f" + {format_quantity(quantity, unit)}"
        text += f" ({format_cost(line.cost, currency)}"
        text += ")" if line.cost_complete else ", incomplete)"
        if line.notes:
            text += f" - {'; '.join(line.notes)}"
        lines.append(text)

    lines.append(f"Total: {format_cost(result.total_cost, currency)}")

    for warning in result.warnings:
        lines.append(f"! {warning.message}")
    for error in result.line_errors:
        lines.append(f"! {error.message}")
    if result.skipped_count:
        lines.append(f"Skipped {result.skipped_count} incomplete line(s)")

    return "\n".join(lines)

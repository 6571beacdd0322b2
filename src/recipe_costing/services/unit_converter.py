"""
Unit conversion for the recipe costing engine.

This module provides:
- Same-domain conversions through the registry factors
- Mass/volume conversions through an ingredient density (g/mL)
- Conversion display helpers

All arithmetic is Decimal. Conversions return a ``(success, value, error)``
tuple and never raise for bad data; ``error`` is a ConversionError instance
describing why the conversion failed. Nothing is clamped or silently
substituted.
"""

from decimal import Decimal
from typing import Optional, Tuple

from recipe_costing.models.unit import Domain, Unit
from recipe_costing.services.exceptions import (
    ConversionError,
    DensityRequired,
    IncompatibleUnits,
    InvalidQuantity,
)
from recipe_costing.services.unit_registry import base_unit, domain_of, factor_to_base
from recipe_costing.utils.decimal_utils import ZERO

ConversionResult = Tuple[bool, Decimal, Optional[ConversionError]]

_DENSITY_DOMAINS = (Domain.MASS, Domain.VOLUME)


def _usable_density(density: Optional[Decimal]) -> bool:
    return density is not None and density > 0


# ============================================================================
# Base-unit helpers
# ============================================================================


def to_base_units(quantity: Decimal, unit: Unit) -> Decimal:
    """
    Express a quantity in its domain's base unit (g, ml or each).

    Examples:
        >>> to_base_units(Decimal("2"), Unit.KILOGRAM)
        Decimal('2000')
    """
    return quantity * factor_to_base(unit)


def from_base_units(base_quantity: Decimal, unit: Unit) -> Decimal:
    """Express a base-unit quantity in ``unit`` (same domain)."""
    return base_quantity / factor_to_base(unit)


# ============================================================================
# Conversion
# ============================================================================


def convert(
    quantity: Decimal,
    from_unit: Unit,
    to_unit: Unit,
    density: Optional[Decimal] = None,
) -> ConversionResult:
    """
    Convert a quantity between any two units.

    This function handles:
    - Same-domain conversions (mass->mass, volume->volume, count->count)
    - Mass->volume: divides the gram amount by density
    - Volume->mass: multiplies the milliliter amount by density

    Args:
        quantity: Quantity to convert (must not be negative)
        from_unit: Source unit
        to_unit: Target unit
        density: Grams per milliliter; only used across mass/volume

    Returns:
        Tuple of (success, converted_value, error)
        - success: True if conversion succeeded
        - converted_value: Result (Decimal("0") if failed)
        - error: None, or DensityRequired / IncompatibleUnits / InvalidQuantity

    Raises:
        ConfigurationError: If either unit is not registered

    Examples:
        >>> convert(Decimal("1"), Unit.KILOGRAM, Unit.GRAM)
        (True, Decimal('1000'), None)
        >>> convert(Decimal("200"), Unit.GRAM, Unit.MILLILITER)[0]
        False
    """
    from_domain = domain_of(from_unit)
    to_domain = domain_of(to_unit)

    if quantity < 0:
        return False, ZERO, InvalidQuantity(quantity)

    if from_unit == to_unit:
        return True, quantity, None

    # Same domain: value -> base unit -> target unit
    if from_domain == to_domain:
        return True, quantity * factor_to_base(from_unit) / factor_to_base(to_unit), None

    if from_domain not in _DENSITY_DOMAINS or to_domain not in _DENSITY_DOMAINS:
        return False, ZERO, IncompatibleUnits(from_unit, to_unit)

    if not _usable_density(density):
        return False, ZERO, DensityRequired(from_unit, to_unit)

    base_amount = to_base_units(quantity, from_unit)
    if from_domain == Domain.MASS:
        # grams -> milliliters
        bridged = base_amount / density
    else:
        # milliliters -> grams
        bridged = base_amount * density

    return True, from_base_units(bridged, to_unit), None


def convert_to_domain_base(
    quantity: Decimal,
    unit: Unit,
    domain: Domain,
    density: Optional[Decimal] = None,
) -> ConversionResult:
    """
    Convert a quantity into the base unit of ``domain``.

    Used to bring a usage into the base unit of an ingredient's pack domain.

    Args:
        quantity: Quantity to convert
        unit: Unit of ``quantity``
        domain: Target domain
        density: Grams per milliliter, needed only across mass/volume

    Returns:
        Tuple of (success, base_quantity, error)
    """
    return convert(quantity, unit, base_unit(domain), density)


def format_conversion(
    value: Decimal,
    from_unit: Unit,
    to_unit: Unit,
    density: Optional[Decimal] = None,
    precision: int = 2,
) -> str:
    """
    Format a unit conversion for display.

    Args:
        value: Source quantity
        from_unit: Source unit
        to_unit: Target unit
        density: Optional density for mass/volume conversions
        precision: Decimal places for result

    Returns:
        Formatted string (e.g., "1 kg = 1000.00 g")
        Returns error message if conversion fails
    """
    success, converted, error = convert(value, from_unit, to_unit, density)

    if not success:
        return f"Error: {error}"

    return f"{value:f} {from_unit} = {converted:.{precision}f} {to_unit}"

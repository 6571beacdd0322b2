"""
Unit registry: domain and base-unit factor for every Unit.

Conversion Strategy:
- Mass units convert through grams (base unit)
- Volume units convert through milliliters (base unit)
- Count units convert through "each" (base unit)

Culinary measures are British-first: metric teaspoon/tablespoon/cup and UK
imperial fluid ounce, pint, quart and gallon.

The table is closed and checked on import: every Unit member must have an
entry. Asking for an unknown unit raises ConfigurationError.
"""

from decimal import Decimal
from typing import Dict, List, Tuple, Union

from recipe_costing.models.unit import Domain, Unit
from recipe_costing.services.exceptions import ConfigurationError


# ============================================================================
# Standard Conversion Table
# ============================================================================

UNIT_TABLE: Dict[Unit, Tuple[Domain, Decimal]] = {
    # Mass -> grams
    Unit.GRAM: (Domain.MASS, Decimal("1")),
    Unit.KILOGRAM: (Domain.MASS, Decimal("1000")),
    Unit.MILLIGRAM: (Domain.MASS, Decimal("0.001")),
    Unit.POUND: (Domain.MASS, Decimal("453.59237")),
    Unit.OUNCE: (Domain.MASS, Decimal("28.349523125")),
    # Size units are approximate item weights (eggs, onions)
    Unit.LARGE: (Domain.MASS, Decimal("100")),
    Unit.MEDIUM: (Domain.MASS, Decimal("60")),
    Unit.SMALL: (Domain.MASS, Decimal("30")),
    # Volume -> milliliters
    Unit.MILLILITER: (Domain.VOLUME, Decimal("1")),
    Unit.LITER: (Domain.VOLUME, Decimal("1000")),
    Unit.TEASPOON: (Domain.VOLUME, Decimal("5")),
    Unit.TABLESPOON: (Domain.VOLUME, Decimal("15")),
    Unit.CUP: (Domain.VOLUME, Decimal("250")),
    Unit.FLUID_OUNCE: (Domain.VOLUME, Decimal("28.4130625")),
    Unit.PINT: (Domain.VOLUME, Decimal("568.26125")),
    Unit.QUART: (Domain.VOLUME, Decimal("1136.5225")),
    Unit.GALLON: (Domain.VOLUME, Decimal("4546.09")),
    Unit.PINCH: (Domain.VOLUME, Decimal("0.5")),
    Unit.DASH: (Domain.VOLUME, Decimal("0.25")),
    # Count -> each
    Unit.EACH: (Domain.COUNT, Decimal("1")),
    Unit.SLICE: (Domain.COUNT, Decimal("1")),
    Unit.DOZEN: (Domain.COUNT, Decimal("12")),
}

BASE_UNITS: Dict[Domain, Unit] = {
    Domain.MASS: Unit.GRAM,
    Domain.VOLUME: Unit.MILLILITER,
    Domain.COUNT: Unit.EACH,
}

# Accepted spellings for catalog tokens, beyond the canonical enum values
UNIT_ALIASES: Dict[str, Unit] = {
    "gram": Unit.GRAM,
    "grams": Unit.GRAM,
    "kilogram": Unit.KILOGRAM,
    "kilograms": Unit.KILOGRAM,
    "kilo": Unit.KILOGRAM,
    "milligram": Unit.MILLIGRAM,
    "milligrams": Unit.MILLIGRAM,
    "lbs": Unit.POUND,
    "pound": Unit.POUND,
    "pounds": Unit.POUND,
    "ounce": Unit.OUNCE,
    "ounces": Unit.OUNCE,
    "milliliter": Unit.MILLILITER,
    "milliliters": Unit.MILLILITER,
    "millilitre": Unit.MILLILITER,
    "millilitres": Unit.MILLILITER,
    "liter": Unit.LITER,
    "liters": Unit.LITER,
    "litre": Unit.LITER,
    "litres": Unit.LITER,
    "teaspoon": Unit.TEASPOON,
    "teaspoons": Unit.TEASPOON,
    "tablespoon": Unit.TABLESPOON,
    "tablespoons": Unit.TABLESPOON,
    "cups": Unit.CUP,
    "fl oz": Unit.FLUID_OUNCE,
    "fl. oz": Unit.FLUID_OUNCE,
    "fluid ounce": Unit.FLUID_OUNCE,
    "fluid ounces": Unit.FLUID_OUNCE,
    "pints": Unit.PINT,
    "pt": Unit.PINT,
    "quarts": Unit.QUART,
    "qt": Unit.QUART,
    "gallons": Unit.GALLON,
    "gal": Unit.GALLON,
    "pinches": Unit.PINCH,
    "dashes": Unit.DASH,
    "ea": Unit.EACH,
    "piece": Unit.EACH,
    "pieces": Unit.EACH,
    "count": Unit.EACH,
    "slices": Unit.SLICE,
}


def _verify_registry() -> None:
    """Fail on import if a Unit member has no table entry."""
    missing = [unit.value for unit in Unit if unit not in UNIT_TABLE]
    if missing:
        raise ConfigurationError(f"Unit table has no entry for: {', '.join(missing)}")


_verify_registry()


# ============================================================================
# Lookups
# ============================================================================


def _entry(unit: Unit) -> Tuple[Domain, Decimal]:
    try:
        return UNIT_TABLE[unit]
    except (KeyError, TypeError):
        raise ConfigurationError(f"Unknown unit: {unit!r}") from None


def domain_of(unit: Unit) -> Domain:
    """
    Get the measurement domain of a unit.

    Args:
        unit: A Unit member

    Returns:
        Domain of the unit

    Raises:
        ConfigurationError: If ``unit`` is not a registered Unit
    """
    return _entry(unit)[0]


def factor_to_base(unit: Unit) -> Decimal:
    """
    Get the factor that converts 1 ``unit`` into its domain's base unit.

    Examples:
        >>> factor_to_base(Unit.KILOGRAM)
        Decimal('1000')
        >>> factor_to_base(Unit.TABLESPOON)
        Decimal('15')

    Raises:
        ConfigurationError: If ``unit`` is not a registered Unit
    """
    return _entry(unit)[1]


def base_unit(domain: Domain) -> Unit:
    """Get the base unit (g, ml or each) of a domain."""
    return BASE_UNITS[domain]


def units_in_domain(domain: Domain) -> List[Unit]:
    """List every registered unit of a domain, in table order."""
    return [unit for unit, (unit_domain, _) in UNIT_TABLE.items() if unit_domain == domain]


def units_compatible(unit1: Unit, unit2: Unit) -> bool:
    """
    Check if two units share a domain and convert without a density.

    Args:
        unit1: First unit
        unit2: Second unit

    Returns:
        True if both units belong to the same domain
    """
    return domain_of(unit1) == domain_of(unit2)


def parse_unit(token: Union[str, Unit]) -> Unit:
    """
    Resolve a catalog unit token to a Unit.

    Matching is case-insensitive and accepts the aliases in UNIT_ALIASES.

    Args:
        token: Unit token such as "g", "Grams", "fl oz" or a Unit member

    Returns:
        The matching Unit

    Raises:
        ConfigurationError: If the token names no known unit
    """
    if isinstance(token, Unit):
        return token
    if not isinstance(token, str):
        raise ConfigurationError(f"Unknown unit token: {token!r}")

    normalized = " ".join(token.strip().lower().split())
    try:
        return Unit(normalized)
    except ValueError:
        pass

    unit = UNIT_ALIASES.get(normalized)
    if unit is None:
        raise ConfigurationError(f"Unknown unit token: {token!r}")
    return unit

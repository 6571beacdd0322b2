"""
Constants for the recipe costing engine.

This module defines system-wide constants including:
- Application metadata
- Display precision and currency symbols
- Reference densities for common ingredients (volume/weight bridging)
"""

from decimal import Decimal
from typing import Dict, Optional

# ============================================================================
# Application Metadata
# ============================================================================

APP_VERSION = "0.1.0"

# ============================================================================
# Currency
# ============================================================================

DEFAULT_CURRENCY = "GBP"

CURRENCY_SYMBOLS: Dict[str, str] = {
    "GBP": "£",
    "USD": "$",
    "EUR": "€",
}

# ============================================================================
# Decimal precision (display boundary only)
# ============================================================================

CURRENCY_DECIMAL_PLACES = 2
QUANTITY_DECIMAL_PLACES = 3

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Please enter a valid number"
ERROR_INVALID_POSITIVE = "Value must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "Value must be zero or greater"

# ============================================================================
# Ingredient Density Data (for volume-to-weight conversions)
# ============================================================================

# Reference densities in grams per milliliter, keyed by normalized name.
# Only consulted at ingestion when default densities are enabled.
INGREDIENT_DENSITIES: Dict[str, Decimal] = {
    # Flours and dry goods
    "flour": Decimal("0.6"),
    "plain flour": Decimal("0.6"),
    "all-purpose flour": Decimal("0.6"),
    "bread flour": Decimal("0.6"),
    "cake flour": Decimal("0.5"),
    "self-raising flour": Decimal("0.6"),
    "whole wheat flour": Decimal("0.6"),
    "cornstarch": Decimal("0.6"),
    "corn flour": Decimal("0.6"),
    "coconut flour": Decimal("0.4"),
    "almond flour": Decimal("0.4"),
    "ground almonds": Decimal("0.4"),
    "cocoa powder": Decimal("0.4"),
    "baking powder": Decimal("0.8"),
    "baking soda": Decimal("0.87"),
    "bicarbonate of soda": Decimal("0.87"),
    "salt": Decimal("1.2"),
    "table salt": Decimal("1.2"),
    "sea salt": Decimal("1.1"),

    # Sugars and syrups
    "sugar": Decimal("0.85"),
    "granulated sugar": Decimal("0.85"),
    "caster sugar": Decimal("0.85"),
    "brown sugar": Decimal("0.8"),
    "icing sugar": Decimal("0.6"),
    "powdered sugar": Decimal("0.6"),
    "honey": Decimal("1.4"),
    "maple syrup": Decimal("1.3"),
    "golden syrup": Decimal("1.4"),
    "molasses": Decimal("1.4"),
    "jam": Decimal("1.3"),

    # Dairy
    "milk": Decimal("1.03"),
    "whole milk": Decimal("1.03"),
    "skim milk": Decimal("1.03"),
    "butter": Decimal("0.91"),
    "margarine": Decimal("0.91"),
    "cream": Decimal("1.0"),
    "double cream": Decimal("1.0"),
    "single cream": Decimal("1.0"),
    "heavy cream": Decimal("1.0"),
    "yogurt": Decimal("1.05"),
    "greek yogurt": Decimal("1.05"),
    "sour cream": Decimal("1.0"),
    "cream cheese": Decimal("1.0"),

    # Oils
    "vegetable oil": Decimal("0.92"),
    "olive oil": Decimal("0.92"),
    "sunflower oil": Decimal("0.92"),
    "rapeseed oil": Decimal("0.92"),
    "coconut oil": Decimal("0.92"),

    # Nuts and seeds
    "almonds": Decimal("0.6"),
    "walnuts": Decimal("0.6"),
    "pecans": Decimal("0.6"),
    "hazelnuts": Decimal("0.6"),
    "sesame seeds": Decimal("0.6"),
    "chia seeds": Decimal("0.6"),

    # Spices and herbs
    "cinnamon": Decimal("0.4"),
    "ginger": Decimal("0.4"),
    "nutmeg": Decimal("0.4"),
    "vanilla": Decimal("0.4"),
    "paprika": Decimal("0.4"),
    "cumin": Decimal("0.4"),
    "oregano": Decimal("0.1"),
    "basil": Decimal("0.1"),
    "thyme": Decimal("0.1"),
    "parsley": Decimal("0.1"),

    # Liquids and pastes
    "water": Decimal("1.0"),
    "lemon juice": Decimal("1.0"),
    "orange juice": Decimal("1.0"),
    "vinegar": Decimal("1.0"),
    "coconut milk": Decimal("1.0"),
    "peanut butter": Decimal("1.0"),
    "tahini": Decimal("1.0"),
    "tomato paste": Decimal("1.2"),
}


def get_ingredient_density(ingredient_name: str) -> Optional[Decimal]:
    """
    Get the reference density (g/mL) for an ingredient by name.

    Matching is exact on the normalized (lowercased, stripped) name. No
    partial matching: "almond milk" must not pick up the density of "milk".

    Args:
        ingredient_name: Name of the ingredient

    Returns:
        Density in grams per milliliter, or None if the name is not listed
    """
    if not ingredient_name:
        return None
    return INGREDIENT_DENSITIES.get(ingredient_name.lower().strip())

"""
Ingestion of catalog records into costing value objects.

The ingredient catalog and recipe store hand over plain mappings with
decimal-encoded strings (or numbers) and unit tokens. This module validates
them and builds Ingredient and Recipe values:

- Pack quantity must be > 0, pack price >= 0, density > 0 when present
- Recipe yield quantity must be > 0
- Unit tokens must name a known unit (ConfigurationError otherwise)

Every problem in a record is collected and raised together as one
ValidationError. Usage lines are parsed but not judged: a line with no
ingredient or a zero quantity is kept and later counted as skipped by the
aggregator and mixer.
"""

from decimal import Decimal
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

from recipe_costing.models.ingredient import Ingredient
from recipe_costing.models.recipe import Recipe, Section, SubRecipeUsage, Usage
from recipe_costing.services.exceptions import ValidationError
from recipe_costing.services.logging_utils import get_service_logger, log_operation
from recipe_costing.services.unit_registry import parse_unit
from recipe_costing.utils.config import get_config
from recipe_costing.utils.constants import (
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_POSITIVE,
    ERROR_REQUIRED_FIELD,
    get_ingredient_density,
)
from recipe_costing.utils.decimal_utils import to_decimal

logger = get_service_logger(__name__)


# ============================================================================
# Field validators
# ============================================================================


def _parse_decimal(
    record: Mapping[str, Any],
    key: str,
    errors: List[str],
    label: str,
    required: bool = True,
) -> Optional[Decimal]:
    """Read a decimal field, appending to ``errors`` on failure."""
    raw = record.get(key)
    if raw is None or (isinstance(raw, str) and raw.strip() == ""):
        if required:
            errors.append(f"{label}: {ERROR_REQUIRED_FIELD}")
        return None
    try:
        return to_decimal(raw)
    except ValueError:
        errors.append(f"{label}: {ERROR_INVALID_NUMBER}")
        return None


def validate_positive(value: Optional[Decimal], label: str) -> Tuple[bool, str]:
    """
    Validate that a value is strictly positive.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is not None and value <= 0:
        return False, f"{label}: {ERROR_INVALID_POSITIVE}"
    return True, ""


def validate_non_negative(value: Optional[Decimal], label: str) -> Tuple[bool, str]:
    """
    Validate that a value is zero or greater.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is not None and value < 0:
        return False, f"{label}: {ERROR_INVALID_NON_NEGATIVE}"
    return True, ""


def _collect(errors: List[str], check: Tuple[bool, str]) -> None:
    is_valid, message = check
    if not is_valid:
        errors.append(message)


def _required_text(record: Mapping[str, Any], key: str, errors: List[str], label: str) -> str:
    value = record.get(key)
    if value is None or str(value).strip() == "":
        errors.append(f"{label}: {ERROR_REQUIRED_FIELD}")
        return ""
    return str(value).strip()


# ============================================================================
# Ingredients
# ============================================================================


def parse_ingredient(
    record: Mapping[str, Any],
    use_default_densities: Optional[bool] = None,
) -> Ingredient:
    """
    Build an Ingredient from a catalog record.

    Expected keys: id, name, pack_quantity, pack_unit, pack_price and
    optionally density (g/mL) and currency.

    Args:
        record: Catalog record
        use_default_densities: Fill a missing density from the reference
            table. None means use the configured default.

    Returns:
        Validated Ingredient

    Raises:
        ValidationError: If any field is missing or out of range
        ConfigurationError: If the pack unit token is unknown
    """
    errors: List[str] = []
    ingredient_id = record.get("id")
    label = f"Ingredient {ingredient_id}"

    if ingredient_id is None:
        errors.append(f"{label} id: {ERROR_REQUIRED_FIELD}")
    name = _required_text(record, "name", errors, f"{label} name")

    pack_quantity = _parse_decimal(record, "pack_quantity", errors, f"{label} pack quantity")
    _collect(errors, validate_positive(pack_quantity, f"{label} pack quantity"))

    pack_price = _parse_decimal(record, "pack_price", errors, f"{label} pack price")
    _collect(errors, validate_non_negative(pack_price, f"{label} pack price"))

    density = _parse_decimal(record, "density", errors, f"{label} density", required=False)
    _collect(errors, validate_positive(density, f"{label} density"))

    if record.get("pack_unit") in (None, ""):
        errors.append(f"{label} pack unit: {ERROR_REQUIRED_FIELD}")

    if errors:
        raise ValidationError(errors)

    pack_unit = parse_unit(record["pack_unit"])

    if use_default_densities is None:
        use_default_densities = get_config().use_default_densities
    if density is None and use_default_densities:
        density = get_ingredient_density(name)
        if density is not None:
            log_operation(
                logger,
                operation="parse_ingredient",
                outcome="default_density_applied",
                ingredient_id=ingredient_id,
                density=str(density),
            )

    currency = str(record.get("currency") or get_config().default_currency).strip().upper()

    return Ingredient(
        id=ingredient_id,
        name=name,
        pack_quantity=pack_quantity,
        pack_unit=pack_unit,
        pack_price=pack_price,
        density=density,
        currency=currency,
    )


def parse_ingredients(
    records: Iterable[Mapping[str, Any]],
    use_default_densities: Optional[bool] = None,
) -> Dict[Hashable, Ingredient]:
    """
    Build an ingredient lookup from catalog records.

    Returns:
        Dict keyed by ingredient id, in record order

    Raises:
        ValidationError: Listing the problems of every invalid record
    """
    ingredients: Dict[Hashable, Ingredient] = {}
    errors: List[str] = []
    for record in records:
        try:
            ingredient = parse_ingredient(record, use_default_densities=use_default_densities)
        except ValidationError as e:
            errors.extend(e.errors)
            continue
        ingredients[ingredient.id] = ingredient

    if errors:
        raise ValidationError(errors)
    return ingredients


# ============================================================================
# Recipes
# ============================================================================


def _parse_usage(record: Mapping[str, Any], errors: List[str], label: str) -> Optional[Usage]:
    quantity = _parse_decimal(record, "quantity", errors, f"{label} quantity")
    if record.get("unit") in (None, ""):
        errors.append(f"{label} unit: {ERROR_REQUIRED_FIELD}")
        return None
    if quantity is None:
        return None

    note = record.get("note")
    return Usage(
        ingredient_id=record.get("ingredient_id"),
        quantity=quantity,
        unit=parse_unit(record["unit"]),
        note=str(note) if note else None,
        id=record.get("id"),
    )


def _parse_usages(
    records: Iterable[Mapping[str, Any]], errors: List[str], label: str
) -> Tuple[Usage, ...]:
    usages = []
    for index, item in enumerate(records or ()):
        usage = _parse_usage(item, errors, f"{label} item {index + 1}")
        if usage is not None:
            usages.append(usage)
    return tuple(usages)


def _parse_sub_recipes(
    records: Iterable[Mapping[str, Any]], errors: List[str], label: str
) -> Tuple[SubRecipeUsage, ...]:
    sub_recipes = []
    for index, item in enumerate(records or ()):
        item_label = f"{label} sub-recipe {index + 1}"
        quantity = _parse_decimal(item, "quantity", errors, f"{item_label} quantity")
        if item.get("unit") in (None, ""):
            errors.append(f"{item_label} unit: {ERROR_REQUIRED_FIELD}")
            continue
        if quantity is None:
            continue
        note = item.get("note")
        sub_recipes.append(
            SubRecipeUsage(
                recipe_id=item.get("recipe_id"),
                quantity=quantity,
                unit=parse_unit(item["unit"]),
                note=str(note) if note else None,
                id=item.get("id"),
            )
        )
    return tuple(sub_recipes)


def _parse_int(record: Mapping[str, Any], key: str, errors: List[str], label: str) -> Optional[int]:
    # Section metadata only; never part of cost math
    raw = record.get(key)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        errors.append(f"{label}: {ERROR_INVALID_NUMBER}")
        return None


def _parse_section(record: Mapping[str, Any], errors: List[str], label: str) -> Section:
    return Section(
        id=record.get("id"),
        title=str(record.get("title") or ""),
        items=_parse_usages(record.get("items") or (), errors, label),
        description=record.get("description"),
        method=record.get("method"),
        bake_temp=_parse_int(record, "bake_temp", errors, f"{label} bake temperature"),
        bake_time=_parse_int(record, "bake_time", errors, f"{label} bake time"),
    )


def parse_recipe(record: Mapping[str, Any]) -> Recipe:
    """
    Build a Recipe from a recipe-store record.

    Expected keys: id, name, yield_quantity, yield_unit, and either items
    (flat usages) or sections (each with id, title, items and optional
    description, method, bake_temp, bake_time, order), plus optional
    sub_recipes (each with recipe_id, quantity, unit and optional note).
    Sections are kept in ``order`` when the records carry it, otherwise in
    record order.

    Raises:
        ValidationError: If the yield or any usage quantity is invalid
        ConfigurationError: If a unit token is unknown
    """
    errors: List[str] = []
    recipe_id = record.get("id")
    label = f"Recipe {recipe_id}"

    name = _required_text(record, "name", errors, f"{label} name")
    yield_quantity = _parse_decimal(record, "yield_quantity", errors, f"{label} yield quantity")
    _collect(errors, validate_positive(yield_quantity, f"{label} yield quantity"))
    if record.get("yield_unit") in (None, ""):
        errors.append(f"{label} yield unit: {ERROR_REQUIRED_FIELD}")

    section_records = list(record.get("sections") or ())
    if any("order" in section for section in section_records):
        section_records.sort(key=lambda section: section.get("order") or 0)

    sections = tuple(
        _parse_section(section, errors, f"{label} section {section.get('id')}")
        for section in section_records
    )
    items = _parse_usages(record.get("items") or (), errors, label)
    sub_recipes = _parse_sub_recipes(record.get("sub_recipes") or (), errors, label)

    if errors:
        raise ValidationError(errors)

    return Recipe(
        id=recipe_id,
        name=name,
        yield_quantity=yield_quantity,
        yield_unit=parse_unit(record["yield_unit"]),
        items=items,
        sections=sections,
        sub_recipes=sub_recipes,
    )

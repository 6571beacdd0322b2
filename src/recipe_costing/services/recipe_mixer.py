"""
Recipe mixer: combine whole recipes and individual sections into one list.

A mix is a list of selections. Each selection names a recipe, either one of
its sections or the whole recipe, a recipe-level multiplier, and an optional
section override multiplier. The override, when set, replaces the recipe
multiplier for that selection only.

``combine`` merges the selected usages per ingredient:
- Quantities are scaled by the effective multiplier and summed in the unit of
  the first usage seen for that ingredient (selection order, then item order)
- A usage in another unit is converted into that first unit, through the
  ingredient density when it crosses mass/volume. If that is impossible the
  usage is listed on the line as unconverted, reported as a
  UnitMismatchWarning, and left out of the quantity total
- Notes are concatenated in encounter order; exact duplicates are dropped
- Cost is summed independently per usage (usage_cost * multiplier), so the
  display unit chosen for the merge never affects cost
- A whole-recipe selection also expands the recipe's sub-recipe lines into
  the used recipes' usages, scaled by the fraction of a batch used

``RecipeMixer`` owns the editable selection state for one session. Its
mutators and ``combine`` share one lock, so ``combine`` never sees a
half-applied change.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Hashable, List, Mapping, Optional, Sequence, Tuple

from recipe_costing.models.ingredient import Ingredient
from recipe_costing.models.recipe import Recipe, Section, SubRecipeUsage, Usage
from recipe_costing.models.unit import Unit
from recipe_costing.services.cost_service import usage_cost
from recipe_costing.services.exceptions import (
    CircularSubRecipe,
    ConversionError,
    CurrencyMismatch,
    IngredientNotFound,
    InvalidRecipe,
    RecipeNotFound,
    SectionNotFound,
    ValidationError,
)
from recipe_costing.services.logging_utils import get_service_logger, log_operation
from recipe_costing.services.recipe_cost_service import LineError
from recipe_costing.services.unit_converter import convert
from recipe_costing.utils.decimal_utils import ONE, ZERO, Number, to_decimal

logger = get_service_logger(__name__)


class _WholeRecipe:
    """Section key meaning every section (or every flat item) of a recipe.

    A single instance exists and is compared by identity, so no section id
    can be mistaken for it.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "WHOLE_RECIPE"

    def __str__(self) -> str:
        return "whole"


WHOLE_RECIPE = _WholeRecipe()

DEFAULT_MIX_NAME = "Custom Mix"


def _validate_multiplier(value: Number, label: str = "Multiplier") -> Decimal:
    """Coerce a multiplier to Decimal and require it to be positive."""
    try:
        multiplier = to_decimal(value)
    except ValueError:
        raise ValidationError([f"{label}: not a number ({value!r})"]) from None
    if multiplier <= 0:
        raise ValidationError([f"{label}: must be greater than zero (got {multiplier})"])
    return multiplier


def _resolve_section(recipe: Recipe, section_key: Hashable) -> Optional[Section]:
    """Return the section for ``section_key`` (None for the whole recipe)."""
    if section_key is WHOLE_RECIPE:
        return None
    section = recipe.get_section(section_key)
    if section is None:
        raise SectionNotFound(recipe.id, section_key)
    return section


# ============================================================================
# Selection and result types
# ============================================================================


@dataclass(frozen=True)
class Selection:
    """
    One entry of a mix.

    Attributes:
        recipe: Selected recipe
        section_key: Section id, or WHOLE_RECIPE
        multiplier: Recipe-level multiplier (> 0)
        override_multiplier: Section override (> 0) or None

    Raises:
        ValidationError: If a multiplier is not positive
        SectionNotFound: If ``section_key`` names no section of the recipe
    """

    recipe: Recipe
    section_key: Hashable = WHOLE_RECIPE
    multiplier: Decimal = ONE
    override_multiplier: Optional[Decimal] = None

    def __post_init__(self):
        object.__setattr__(self, "multiplier", _validate_multiplier(self.multiplier))
        if self.override_multiplier is not None:
            object.__setattr__(
                self,
                "override_multiplier",
                _validate_multiplier(self.override_multiplier, "Section override"),
            )
        _resolve_section(self.recipe, self.section_key)

    @property
    def is_whole_recipe(self) -> bool:
        return self.section_key is WHOLE_RECIPE

    @property
    def effective_multiplier(self) -> Decimal:
        """Override if set, otherwise the recipe multiplier."""
        if self.override_multiplier is not None:
            return self.override_multiplier
        return self.multiplier

    @property
    def source_section(self) -> Optional[Section]:
        return _resolve_section(self.recipe, self.section_key)

    @property
    def title(self) -> str:
        if self.is_whole_recipe:
            return f"{self.recipe.name} (Whole Recipe)"
        return self.source_section.title or f"{self.recipe.name} Section"

    def items(self) -> Tuple[Usage, ...]:
        """Usages covered by this selection, in stored order.

        Sub-recipe lines are not included; combine() expands them.
        """
        if self.is_whole_recipe:
            return self.recipe.all_usages()
        return self.source_section.items


@dataclass
class UnitMismatchWarning:
    """A usage whose quantity could not be merged into its combined line.

    Attributes:
        ingredient_id: Ingredient of the line
        ingredient_name: Display name of the ingredient
        quantity: Scaled quantity that was not merged
        unit: Unit of that quantity
        target_unit: Unit of the combined line
        error: Why the conversion failed
        recipe_id: Recipe the usage came from
        section_key: Selection the usage came from
    """

    ingredient_id: Hashable
    ingredient_name: str
    quantity: Decimal
    unit: Unit
    target_unit: Unit
    error: ConversionError
    recipe_id: Optional[Hashable] = None
    section_key: Optional[Hashable] = None

    @property
    def message(self) -> str:
        return (
            f"{self.ingredient_name}: {self.quantity} {self.unit} not added to "
            f"{self.target_unit} total ({self.error})"
        )


@dataclass
class CombinedLine:
    """
    Merged total for one ingredient across a mix.

    Attributes:
        ingredient_id: Ingredient identity (merge key)
        ingredient_name: Display name
        quantity: Sum of merged quantities, in ``unit``
        unit: Unit of the first usage seen for the ingredient
        notes: Notes in encounter order, exact duplicates removed
        cost: Sum of the line's costed usages
        unconverted: (quantity, unit) pairs that could not be merged
        cost_complete: False if any usage of this line could not be costed
    """

    ingredient_id: Hashable
    ingredient_name: str
    quantity: Decimal
    unit: Unit
    notes: List[str] = field(default_factory=list)
    cost: Decimal = ZERO
    unconverted: List[Tuple[Decimal, Unit]] = field(default_factory=list)
    cost_complete: bool = True


@dataclass
class CombineResult:
    """Output of combine(): merged lines, total cost and every issue found."""

    lines: List[CombinedLine] = field(default_factory=list)
    total_cost: Decimal = ZERO
    currency: Optional[str] = None
    warnings: List[UnitMismatchWarning] = field(default_factory=list)
    line_errors: List[LineError] = field(default_factory=list)
    skipped_count: int = 0

    @property
    def has_issues(self) -> bool:
        """True if any usage was skipped, not costed or not merged."""
        return bool(self.warnings) or bool(self.line_errors) or self.skipped_count > 0

    def get_line(self, ingredient_id: Hashable) -> Optional[CombinedLine]:
        for line in self.lines:
            if line.ingredient_id == ingredient_id:
                return line
        return None


# ============================================================================
# Combine
# ============================================================================


class _Combiner:
    """Accumulates one combine() run. Not shared between runs."""

    def __init__(
        self,
        ingredients: Mapping[Hashable, Ingredient],
        recipes: Mapping[Hashable, Recipe],
    ):
        self.ingredients = ingredients
        self.recipes = recipes
        self.merged: "OrderedDict[Hashable, CombinedLine]" = OrderedDict()
        self.result = CombineResult()
        self.position = 0

    def _next_position(self) -> int:
        position = self.position
        self.position += 1
        return position

    def add_usage(
        self,
        usage: Usage,
        multiplier: Decimal,
        recipe_id: Hashable,
        section_key: Hashable,
    ) -> None:
        result = self.result
        line_position = self._next_position()

        if not usage.is_valid:
            result.skipped_count += 1
            return

        ingredient = self.ingredients.get(usage.ingredient_id)
        if ingredient is None:
            result.line_errors.append(
                LineError(
                    position=line_position,
                    ingredient_id=usage.ingredient_id,
                    quantity=usage.quantity,
                    unit=usage.unit,
                    error=IngredientNotFound(usage.ingredient_id),
                    section_id=section_key,
                    recipe_id=recipe_id,
                )
            )
            return

        scaled_quantity = usage.quantity * multiplier
        line = self.merged.get(ingredient.id)
        if line is None:
            line = CombinedLine(
                ingredient_id=ingredient.id,
                ingredient_name=ingredient.name,
                quantity=scaled_quantity,
                unit=usage.unit,
            )
            self.merged[ingredient.id] = line
        else:
            success, converted, error = convert(
                scaled_quantity, usage.unit, line.unit, ingredient.density
            )
            if success:
                line.quantity += converted
            else:
                line.unconverted.append((scaled_quantity, usage.unit))
                result.warnings.append(
                    UnitMismatchWarning(
                        ingredient_id=ingredient.id,
                        ingredient_name=ingredient.name,
                        quantity=scaled_quantity,
                        unit=usage.unit,
                        target_unit=line.unit,
                        error=error,
                        recipe_id=recipe_id,
                        section_key=section_key,
                    )
                )

        if usage.note and usage.note not in line.notes:
            line.notes.append(usage.note)

        cost_error = None
        success, cost, error = usage_cost(usage, ingredient)
        if not success:
            cost_error = error
        elif result.currency is None:
            result.currency = ingredient.currency
        elif ingredient.currency != result.currency:
            cost_error = CurrencyMismatch(result.currency, ingredient.currency)

        if cost_error is not None:
            line.cost_complete = False
            result.line_errors.append(
                LineError(
                    position=line_position,
                    ingredient_id=ingredient.id,
                    quantity=usage.quantity,
                    unit=usage.unit,
                    error=cost_error,
                    section_id=section_key,
                    recipe_id=recipe_id,
                )
            )
            return

        scaled_cost = cost * multiplier
        line.cost += scaled_cost
        result.total_cost += scaled_cost

    def add_sub_recipes(
        self,
        recipe: Recipe,
        multiplier: Decimal,
        section_key: Hashable,
        path: Tuple[Hashable, ...],
    ) -> None:
        """Expand a recipe's sub-recipe lines into their scaled usages."""
        for sub_usage in recipe.sub_recipes:
            line_position = self._next_position()

            if not sub_usage.is_valid:
                self.result.skipped_count += 1
                continue

            error = None
            used = None
            if sub_usage.recipe_id in path:
                error = CircularSubRecipe(path + (sub_usage.recipe_id,))
            else:
                used = self.recipes.get(sub_usage.recipe_id)
                if used is None:
                    error = RecipeNotFound(sub_usage.recipe_id)
                elif used.yield_quantity is None or used.yield_quantity <= 0:
                    error = InvalidRecipe(
                        used.id, f"yield quantity must be positive (got {used.yield_quantity})"
                    )
                else:
                    success, quantity_in_yield_unit, error = convert(
                        sub_usage.quantity, sub_usage.unit, used.yield_unit
                    )

            if error is not None:
                self.result.line_errors.append(
                    LineError(
                        position=line_position,
                        ingredient_id=None,
                        quantity=sub_usage.quantity,
                        unit=sub_usage.unit,
                        error=error,
                        section_id=section_key,
                        recipe_id=recipe.id,
                        sub_recipe_id=sub_usage.recipe_id,
                    )
                )
                continue

            # Fraction of one batch of the used recipe, times the selection multiplier
            factor = multiplier * quantity_in_yield_unit / used.yield_quantity
            for usage in used.all_usages():
                self.add_usage(usage, factor, used.id, section_key)
            self.add_sub_recipes(used, factor, section_key, path + (used.id,))


def combine(
    selections: Sequence[Selection],
    ingredients: Mapping[Hashable, Ingredient],
    recipes: Optional[Mapping[Hashable, Recipe]] = None,
) -> CombineResult:
    """
    Merge a list of selections into one ingredient list with a total cost.

    Duplicate selections are allowed here and each contributes in full;
    de-duplication by (recipe, section) is RecipeMixer's job.

    Args:
        selections: Selections in mix order
        ingredients: Ingredient lookup keyed by ingredient id
        recipes: Recipe lookup used to expand sub-recipe lines of whole-recipe
            selections. Without it each sub-recipe line is a RecipeNotFound
            line error.

    Returns:
        CombineResult. Lines are ordered by first appearance of each
        ingredient. Running it twice on the same input gives equal results.
    """
    combiner = _Combiner(ingredients, recipes if recipes is not None else {})

    for selection in selections:
        multiplier = selection.effective_multiplier
        recipe = selection.recipe

        for usage in selection.items():
            combiner.add_usage(usage, multiplier, recipe.id, selection.section_key)

        if selection.is_whole_recipe:
            combiner.add_sub_recipes(recipe, multiplier, selection.section_key, (recipe.id,))

    result = combiner.result
    result.lines = list(combiner.merged.values())

    if result.has_issues:
        log_operation(
            logger,
            operation="combine",
            outcome="partial",
            level=logging.WARNING,
            selection_count=len(selections),
            line_count=len(result.lines),
            warning_count=len(result.warnings),
            error_count=len(result.line_errors),
            skipped_count=result.skipped_count,
        )
    else:
        log_operation(
            logger,
            operation="combine",
            outcome="success",
            level=logging.DEBUG,
            selection_count=len(selections),
            line_count=len(result.lines),
        )

    return result


# ============================================================================
# Mixer state
# ============================================================================


@dataclass
class SelectedSection:
    """A section (or the whole recipe) picked into the mix."""

    section_key: Hashable
    override_multiplier: Optional[Decimal] = None


@dataclass
class SelectedRecipe:
    """A recipe in the mix with its multiplier and picked sections."""

    recipe: Recipe
    multiplier: Decimal = ONE
    sections: List[SelectedSection] = field(default_factory=list)

    def find(self, section_key: Hashable) -> Optional[SelectedSection]:
        for selected in self.sections:
            if selected.section_key == section_key:
                return selected
        return None


class RecipeMixer:
    """
    Editable mix of recipe selections for one session.

    State is an ordered map of recipe id -> SelectedRecipe, each holding its
    picked sections in the order they were added. Adding the same
    (recipe, section) twice is a no-op.

    Usage:
        mixer = RecipeMixer(ingredients)
        mixer.add_selection(cake, section_key=2, multiplier=3)
        mixer.add_selection(bread)
        mixer.set_section_override(bread.id, WHOLE_RECIPE, "0.5")
        result = mixer.combine()
    """

    def __init__(
        self,
        ingredients: Optional[Mapping[Hashable, Ingredient]] = None,
        recipes: Optional[Mapping[Hashable, Recipe]] = None,
    ):
        """
        Args:
            ingredients: Ingredient lookup keyed by ingredient id
            recipes: Recipe lookup for expanding sub-recipe lines
        """
        self._ingredients: Mapping[Hashable, Ingredient] = ingredients if ingredients is not None else {}
        self._recipe_lookup: Mapping[Hashable, Recipe] = recipes if recipes is not None else {}
        self._recipes: "OrderedDict[Hashable, SelectedRecipe]" = OrderedDict()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(selected.sections) for selected in self._recipes.values())

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    @property
    def recipe_ids(self) -> List[Hashable]:
        with self._lock:
            return list(self._recipes.keys())

    def _get_selected(self, recipe_id: Hashable) -> SelectedRecipe:
        selected = self._recipes.get(recipe_id)
        if selected is None:
            raise ValidationError([f"Recipe {recipe_id} is not in the mix"])
        return selected

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def add_selection(
        self,
        recipe: Recipe,
        section_key: Hashable = WHOLE_RECIPE,
        multiplier: Optional[Number] = None,
    ) -> bool:
        """
        Add a section (or the whole recipe) to the mix.

        Args:
            recipe: Recipe to select from
            section_key: Section id, or WHOLE_RECIPE
            multiplier: Recipe-level multiplier. A new recipe starts at 1 when
                None. For a recipe already in the mix, a given multiplier
                replaces the current one for all of its sections, as
                set_multiplier does.

        Returns:
            True if added, False if that (recipe, section) was already selected
            (a given multiplier is still applied)

        Raises:
            SectionNotFound: If the recipe has no such section
            ValidationError: If the multiplier is not positive
        """
        _resolve_section(recipe, section_key)
        recipe_multiplier = None if multiplier is None else _validate_multiplier(multiplier)

        with self._lock:
            selected = self._recipes.get(recipe.id)
            if selected is None:
                selected = SelectedRecipe(recipe=recipe)
                self._recipes[recipe.id] = selected
            if recipe_multiplier is not None:
                selected.multiplier = recipe_multiplier
            if selected.find(section_key) is not None:
                return False

            selected.sections.append(SelectedSection(section_key=section_key))
            return True

    def remove_selection(self, recipe_id: Hashable, section_key: Hashable) -> bool:
        """
        Drop one selection. Removing the last section drops the recipe too.

        Returns:
            True if something was removed
        """
        with self._lock:
            selected = self._recipes.get(recipe_id)
            if selected is None:
                return False
            remaining = [s for s in selected.sections if s.section_key != section_key]
            if len(remaining) == len(selected.sections):
                return False
            selected.sections = remaining
            if not remaining:
                del self._recipes[recipe_id]
            return True

    def remove_recipe(self, recipe_id: Hashable) -> bool:
        """Drop a recipe and all of its selections."""
        with self._lock:
            return self._recipes.pop(recipe_id, None) is not None

    def set_multiplier(self, recipe_id: Hashable, multiplier: Number) -> None:
        """
        Set the recipe-level multiplier.

        Sections with an override keep using their override.

        Raises:
            ValidationError: If the recipe is not in the mix or the
                multiplier is not positive
        """
        value = _validate_multiplier(multiplier)
        with self._lock:
            self._get_selected(recipe_id).multiplier = value

    def set_section_override(
        self,
        recipe_id: Hashable,
        section_key: Hashable,
        multiplier: Optional[Number],
    ) -> None:
        """
        Set or clear a section override multiplier.

        Args:
            recipe_id: Recipe in the mix
            section_key: Selected section (or WHOLE_RECIPE)
            multiplier: Override value, or None to revert to the recipe multiplier

        Raises:
            ValidationError: If the recipe or section is not in the mix, or the
                override is not positive
        """
        value = None if multiplier is None else _validate_multiplier(multiplier, "Section override")
        with self._lock:
            selected = self._get_selected(recipe_id)
            section = selected.find(section_key)
            if section is None:
                raise ValidationError(
                    [f"Section {section_key!r} of recipe {recipe_id} is not in the mix"]
                )
            section.override_multiplier = value

    def clear_section_overrides(self, recipe_id: Hashable) -> None:
        """Revert every section of a recipe to the recipe-level multiplier."""
        with self._lock:
            for section in self._get_selected(recipe_id).sections:
                section.override_multiplier = None

    def clear(self) -> None:
        """Remove every selection."""
        with self._lock:
            self._recipes.clear()

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def effective_multiplier(self, recipe_id: Hashable, section_key: Hashable) -> Decimal:
        """Multiplier that combine() applies to one selection."""
        with self._lock:
            selected = self._get_selected(recipe_id)
            section = selected.find(section_key)
            if section is None:
                raise ValidationError(
                    [f"Section {section_key!r} of recipe {recipe_id} is not in the mix"]
                )
            if section.override_multiplier is not None:
                return section.override_multiplier
            return selected.multiplier

    def selections(self) -> List[Selection]:
        """Snapshot of the mix as Selection values, in mix order."""
        with self._lock:
            return [
                Selection(
                    recipe=selected.recipe,
                    section_key=section.section_key,
                    multiplier=selected.multiplier,
                    override_multiplier=section.override_multiplier,
                )
                for selected in self._recipes.values()
                for section in selected.sections
            ]

    def combine(self) -> CombineResult:
        """Combine the current mix. Does not change the mix."""
        with self._lock:
            return combine(self.selections(), self._ingredients, self._recipe_lookup)

    def build_recipe_draft(
        self,
        name: str = DEFAULT_MIX_NAME,
        yield_quantity: Number = ONE,
        yield_unit: Unit = Unit.EACH,
        recipe_id: Optional[Hashable] = None,
    ) -> Recipe:
        """
        Turn the current mix into a new, unsaved Recipe.

        Each selection becomes one section; its items keep their units and
        notes with quantities pre-multiplied by the effective multiplier.
        Title, description and method come from the source section.
        Sub-recipe lines of whole-recipe selections are carried over the same
        way, so the draft costs like the mix when given the same lookups.

        Args:
            name: Name of the new recipe (blank falls back to "Custom Mix")
            yield_quantity: Yield of the new recipe (> 0)
            yield_unit: Yield unit of the new recipe
            recipe_id: Identity for the draft, None until the caller saves it

        Returns:
            Recipe value for the caller to persist

        Raises:
            ValidationError: If the mix is empty or the yield is not positive
        """
        yield_value = _validate_multiplier(yield_quantity, "Yield quantity")

        with self._lock:
            selections = self.selections()
        if not selections:
            raise ValidationError(["Cannot build a recipe from an empty mix"])

        sections: List[Section] = []
        sub_recipes: List[SubRecipeUsage] = []
        for index, selection in enumerate(selections):
            multiplier = selection.effective_multiplier
            source = selection.source_section
            sections.append(
                Section(
                    id=f"{selection.recipe.id}-{selection.section_key}-{index}",
                    title=selection.title,
                    items=tuple(usage.scaled(multiplier) for usage in selection.items()),
                    description=source.description if source is not None else None,
                    method=source.method if source is not None else None,
                    bake_temp=source.bake_temp if source is not None else None,
                    bake_time=source.bake_time if source is not None else None,
                )
            )
            if selection.is_whole_recipe:
                sub_recipes.extend(
                    sub_usage.scaled(multiplier) for sub_usage in selection.recipe.sub_recipes
                )

        log_operation(
            logger,
            operation="build_recipe_draft",
            outcome="success",
            level=logging.DEBUG,
            section_count=len(sections),
        )

        return Recipe(
            id=recipe_id,
            name=(name or "").strip() or DEFAULT_MIX_NAME,
            yield_quantity=yield_value,
            yield_unit=yield_unit,
            sections=tuple(sections),
            sub_recipes=tuple(sub_recipes),
        )

"""
Recipe value objects: Usage, Section and Recipe.

A Recipe either holds ordered Sections or a flat list of Usages. When a
recipe carries sections its flat item list is ignored for costing. A recipe
may also use other recipes (a sauce, a dough) through SubRecipeUsage lines.
Section metadata (method, bake temperature, bake time) is carried for the
caller and never enters cost math.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Hashable, Iterator, Optional, Tuple

from .unit import Unit


@dataclass(frozen=True)
class Usage:
    """
    One recipe line: how much of an ingredient, in which unit.

    A usage with no ``ingredient_id`` or with ``quantity <= 0`` is invalid;
    aggregation skips it and counts it.
    """

    ingredient_id: Optional[Hashable]
    quantity: Decimal
    unit: Unit
    note: Optional[str] = None
    id: Optional[Hashable] = None

    @property
    def is_valid(self) -> bool:
        return self.ingredient_id is not None and self.quantity > 0

    def scaled(self, multiplier: Decimal) -> "Usage":
        """
        Return a copy with the quantity multiplied by ``multiplier``.

        The copy has no ``id``: a scaled usage is a new, unsaved line.
        """
        return Usage(
            ingredient_id=self.ingredient_id,
            quantity=self.quantity * multiplier,
            unit=self.unit,
            note=self.note,
        )


@dataclass(frozen=True)
class SubRecipeUsage:
    """
    One recipe line that uses another recipe.

    ``quantity`` is measured in ``unit``, which must share a domain with the
    used recipe's yield unit. Invalid under the same rules as Usage.
    """

    recipe_id: Optional[Hashable]
    quantity: Decimal
    unit: Unit
    note: Optional[str] = None
    id: Optional[Hashable] = None

    @property
    def is_valid(self) -> bool:
        return self.recipe_id is not None and self.quantity > 0

    def scaled(self, multiplier: Decimal) -> "SubRecipeUsage":
        """Return an unsaved copy (no ``id``) with the quantity multiplied."""
        return SubRecipeUsage(
            recipe_id=self.recipe_id,
            quantity=self.quantity * multiplier,
            unit=self.unit,
            note=self.note,
        )


@dataclass(frozen=True)
class Section:
    """Ordered group of usages inside a recipe (e.g. "Dough", "Filling")."""

    id: Hashable
    title: str
    items: Tuple[Usage, ...] = ()
    description: Optional[str] = None
    method: Optional[str] = None
    bake_temp: Optional[int] = None
    bake_time: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class Recipe:
    """
    Recipe with a yield and either flat items or sections.

    Attributes:
        id: Catalog identity
        name: Display name
        yield_quantity: How much one batch makes (expected > 0)
        yield_unit: Unit of the yield
        items: Flat usages, used only when ``sections`` is empty
        sections: Ordered sections
        sub_recipes: Other recipes used by this one, costed after the
            ingredient lines
    """

    id: Hashable
    name: str
    yield_quantity: Decimal
    yield_unit: Unit
    items: Tuple[Usage, ...] = ()
    sections: Tuple[Section, ...] = field(default=())
    sub_recipes: Tuple[SubRecipeUsage, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "sections", tuple(self.sections))
        object.__setattr__(self, "sub_recipes", tuple(self.sub_recipes))

    @property
    def has_sections(self) -> bool:
        return len(self.sections) > 0

    def get_section(self, section_id: Hashable) -> Optional[Section]:
        """Find a section by id, or None."""
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def iter_costing_lines(self) -> Iterator[Tuple[Optional[Section], Usage]]:
        """
        Yield (section, usage) pairs in stored order.

        Sections are walked in the order they are stored. For a recipe without
        sections the flat items are yielded with ``section`` set to None.
        """
        if self.has_sections:
            for section in self.sections:
                for usage in section.items:
                    yield section, usage
        else:
            for usage in self.items:
                yield None, usage

    def all_usages(self) -> Tuple[Usage, ...]:
        """All usages used for costing, flattened in stored order."""
        return tuple(usage for _, usage in self.iter_costing_lines())

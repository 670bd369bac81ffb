"""Ingredient catalog interfaces and resolution helpers."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from macro_planner.domain.meals import (
    IngredientReference,
    MealTemplate,
    ResolvedIngredient,
)
from macro_planner.domain.nutrition import (
    ZERO_MACROS,
    Ingredient,
    MacroProfile,
    scale_macros,
    sum_macros,
)

_logger = logging.getLogger(__name__)


class IngredientCatalog(Protocol):
    """Read-only lookup of ingredients by id."""

    def get_ingredient(self, ingredient_id: str) -> Ingredient | None:
        """Return the ingredient for an id, if known."""


@dataclass
class InMemoryIngredientCatalog(IngredientCatalog):
    """Catalog backed by a dict, keyed by ingredient id."""

    ingredients: dict[str, Ingredient] = field(default_factory=dict)

    @classmethod
    def from_ingredients(
        cls, ingredients: Iterable[Ingredient]
    ) -> "InMemoryIngredientCatalog":
        return cls({ingredient.id: ingredient for ingredient in ingredients})

    def get_ingredient(self, ingredient_id: str) -> Ingredient | None:
        return self.ingredients.get(ingredient_id)


@dataclass
class _CatalogEntry:
    ingredient: Ingredient | None
    expires_at: datetime


@dataclass
class CachingIngredientCatalog(IngredientCatalog):
    """Catalog wrapper that memoizes lookups for a fixed TTL.

    Misses are cached too, so an unknown id does not hit the source on every
    scaling call.
    """

    source: IngredientCatalog
    ttl_seconds: int = 3600
    _entries: dict[str, _CatalogEntry] = field(default_factory=dict)

    def get_ingredient(self, ingredient_id: str) -> Ingredient | None:
        now = datetime.now(tz=UTC)
        entry = self._entries.get(ingredient_id)
        if entry is not None and now < entry.expires_at:
            return entry.ingredient
        ingredient = self.source.get_ingredient(ingredient_id)
        self._entries[ingredient_id] = _CatalogEntry(
            ingredient=ingredient,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )
        return ingredient

    def invalidate(self, ingredient_id: str | None = None) -> None:
        """Drop one cached id, or everything."""
        if ingredient_id is None:
            self._entries.clear()
            return
        self._entries.pop(ingredient_id, None)


def resolve_ingredients(
    references: Sequence[IngredientReference], catalog: IngredientCatalog
) -> tuple[ResolvedIngredient, ...]:
    """Join references with catalog entries, clamping negative amounts to zero."""
    resolved: list[ResolvedIngredient] = []
    for reference in references:
        amount = reference.amount
        if amount is None or amount < 0:
            _logger.warning(
                "Clamping invalid amount for ingredient %s: %s",
                reference.ingredient_id,
                amount,
            )
            reference = IngredientReference(reference.ingredient_id, 0.0)
        ingredient = catalog.get_ingredient(reference.ingredient_id)
        if ingredient is None:
            _logger.warning(
                "Ingredient not found in catalog: %s", reference.ingredient_id
            )
        resolved.append(ResolvedIngredient(reference=reference, ingredient=ingredient))
    return tuple(resolved)


def ingredient_macros(ingredient: Ingredient | None, amount: float) -> MacroProfile:
    """Macros contributed by ``amount`` units of an ingredient."""
    if ingredient is None or amount <= 0:
        return ZERO_MACROS
    return scale_macros(ingredient.per_100, amount / 100.0)


def macros_for_amounts(
    resolved: Sequence[ResolvedIngredient], amounts: Sequence[float]
) -> MacroProfile:
    """Sum macros of resolved ingredients at the given amounts."""
    return sum_macros(
        ingredient_macros(item.ingredient, amount)
        for item, amount in zip(resolved, amounts, strict=True)
    )


def base_macros(resolved: Sequence[ResolvedIngredient]) -> MacroProfile:
    """Sum macros of resolved ingredients at their referenced amounts."""
    return macros_for_amounts(resolved, [item.reference.amount for item in resolved])


def template_from_ingredients(  # noqa: PLR0913
    meal_id: str,
    name: str,
    references: Sequence[IngredientReference],
    catalog: IngredientCatalog,
    *,
    is_custom: bool = False,
    is_global: bool = False,
) -> MealTemplate:
    """Build a template whose macros are derived from its ingredients."""
    resolved = resolve_ingredients(references, catalog)
    return MealTemplate(
        id=meal_id,
        name=name,
        macros=base_macros(resolved),
        ingredients=tuple(item.reference for item in resolved),
        is_custom=is_custom,
        is_global=is_global,
    )

"""Nutrition domain models."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class IngredientCategory(str, Enum):
    """Coarse ingredient grouping used by the catalog."""

    PROTEIN = "protein"
    CARBOHYDRATE = "carbohydrate"
    FAT = "fat"
    VEGETABLE = "vegetable"
    DAIRY = "dairy"
    FRUIT = "fruit"
    CONDIMENT = "condiment"
    CUSTOM = "custom"


@dataclass(frozen=True)
class MacroProfile:
    """Calories and macronutrient grams."""

    calories: float
    protein_g: float
    fat_g: float
    carbs_g: float


ZERO_MACROS = MacroProfile(0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Ingredient:
    """Catalog entry with macros per 100 units (grams or millilitres)."""

    id: str
    name: str
    category: IngredientCategory
    per_100: MacroProfile


def scale_macros(macros: MacroProfile, factor: float) -> MacroProfile:
    """Multiply every component by the same factor."""
    return MacroProfile(
        calories=macros.calories * factor,
        protein_g=macros.protein_g * factor,
        fat_g=macros.fat_g * factor,
        carbs_g=macros.carbs_g * factor,
    )


def sum_macros(profiles: Iterable[MacroProfile]) -> MacroProfile:
    """Add profiles component-wise."""
    total = ZERO_MACROS
    for profile in profiles:
        total = MacroProfile(
            calories=total.calories + profile.calories,
            protein_g=total.protein_g + profile.protein_g,
            fat_g=total.fat_g + profile.fat_g,
            carbs_g=total.carbs_g + profile.carbs_g,
        )
    return total


def clamp_macros(macros: MacroProfile) -> MacroProfile:
    """Replace negative components with zero."""
    return MacroProfile(
        calories=max(0.0, macros.calories),
        protein_g=max(0.0, macros.protein_g),
        fat_g=max(0.0, macros.fat_g),
        carbs_g=max(0.0, macros.carbs_g),
    )

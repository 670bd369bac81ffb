"""Domain models for meal templates and scaling results."""

from dataclasses import dataclass
from enum import Enum

from macro_planner.domain.nutrition import Ingredient, MacroProfile


@dataclass(frozen=True)
class IngredientReference:
    """Quantity of a catalog ingredient inside a meal."""

    ingredient_id: str
    amount: float


@dataclass(frozen=True)
class ResolvedIngredient:
    """Ingredient reference joined with its catalog entry.

    ``ingredient`` is None when the catalog does not know the id; such a
    reference contributes nothing to the meal's macros.
    """

    reference: IngredientReference
    ingredient: Ingredient | None


@dataclass(frozen=True)
class MealTemplate:
    """A meal as stored: ingredient quantities plus aggregate macros.

    A template without ingredient references is a legacy template whose
    macros were stored directly.
    """

    id: str
    name: str
    macros: MacroProfile
    ingredients: tuple[IngredientReference, ...] = ()
    is_custom: bool = False
    is_global: bool = False

    @property
    def is_legacy(self) -> bool:
        return not self.ingredients


@dataclass(frozen=True)
class MacroTarget:
    """Macros a single meal should reach."""

    calories: float
    protein_g: float
    fat_g: float
    carbs_g: float
    is_last_meal: bool = False

    @property
    def macros(self) -> MacroProfile:
        return MacroProfile(
            calories=self.calories,
            protein_g=self.protein_g,
            fat_g=self.fat_g,
            carbs_g=self.carbs_g,
        )


class ScalingMode(str, Enum):
    """How a scaled meal was produced."""

    INGREDIENT = "ingredient"
    LEGACY_PROPORTIONAL = "legacy_proportional"


@dataclass(frozen=True)
class ScaledMeal:
    """Result of scaling a template to a target.

    ``macros`` is what callers display. ``ingredient_macros`` is always the
    sum recomputed from ``ingredients``; the two differ only when
    ``exact_match`` is set.
    """

    template: MealTemplate
    ingredients: tuple[IngredientReference, ...]
    macros: MacroProfile
    ingredient_macros: MacroProfile
    multiplier: float
    mode: ScalingMode
    iterations: int
    max_error: float
    converged: bool
    exact_match: bool
    is_last_meal: bool
    scaled_for_target: bool = True

    @property
    def is_degraded(self) -> bool:
        return self.mode is ScalingMode.LEGACY_PROPORTIONAL

    def to_template(self) -> MealTemplate:
        """Return the scaled meal as a template with ingredient-derived macros."""
        return MealTemplate(
            id=self.template.id,
            name=self.template.name,
            macros=self.ingredient_macros,
            ingredients=self.ingredients,
            is_custom=self.template.is_custom,
            is_global=self.template.is_global,
        )


class FitBand(str, Enum):
    """Qualitative grouping of a fit percentage."""

    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    POOR = "poor"


@dataclass(frozen=True)
class RankedMeal:
    """A candidate meal paired with its scaled form and score."""

    meal: MealTemplate
    scaled: ScaledMeal
    fit_score: float
    fit_percent: float
    band: FitBand

"""Meal scaling towards a four-macro target."""

import logging
import math
from dataclasses import dataclass

from macro_planner.domain.meals import (
    IngredientReference,
    MacroTarget,
    MealTemplate,
    ResolvedIngredient,
    ScaledMeal,
    ScalingMode,
)
from macro_planner.domain.nutrition import MacroProfile, clamp_macros, scale_macros
from macro_planner.services.catalog import (
    IngredientCatalog,
    base_macros,
    macros_for_amounts,
    resolve_ingredients,
)

_MACRO_FIELDS = ("calories", "protein_g", "fat_g", "carbs_g")

_logger = logging.getLogger(__name__)


def relative_error(achieved: float, target: float) -> float:
    """|achieved - target| / target, or 0 when the target is not positive."""
    if target <= 0:
        return 0.0
    return abs(achieved - target) / target


def max_relative_error(achieved: MacroProfile, target: MacroProfile) -> float:
    """Worst relative error across the four macros."""
    return max(
        relative_error(getattr(achieved, name), getattr(target, name))
        for name in _MACRO_FIELDS
    )


def average_ratio(achieved: MacroProfile, target: MacroProfile) -> float:
    """Mean of target/achieved over the macros; undefined ratios count as 1."""
    ratios = []
    for name in _MACRO_FIELDS:
        got = getattr(achieved, name)
        wanted = getattr(target, name)
        ratios.append(wanted / got if got > 0 and wanted > 0 else 1.0)
    return sum(ratios) / len(ratios)


def round_for_display(macros: MacroProfile) -> MacroProfile:
    """Whole kilocalories, grams to one decimal."""
    return MacroProfile(
        calories=float(round(macros.calories)),
        protein_g=round(macros.protein_g, 1),
        fat_g=round(macros.fat_g, 1),
        carbs_g=round(macros.carbs_g, 1),
    )


@dataclass(frozen=True)
class _SearchState:
    """Accumulator threaded through the multiplier search."""

    multiplier: float
    best_multiplier: float
    best_error: float
    iterations: int
    converged: bool


@dataclass
class MealScaler:
    """Scales meal templates so their macros approach a target.

    Ingredient-level templates are scaled by a single multiplier chosen to
    minimize the maximum relative error over calories, protein, fat and
    carbohydrate. Templates without ingredient detail fall back to
    proportional scaling by calories.
    """

    tolerance: float = 0.01
    max_iterations: int = 200
    last_meal_max_iterations: int = 300
    damping: float = 0.3
    exact_last_meal: bool = True
    debug: bool = False

    def scale(
        self, meal: MealTemplate, target: MacroTarget, catalog: IngredientCatalog
    ) -> ScaledMeal:
        """Return ``meal`` scaled towards ``target``. Never raises on bad numbers."""
        target_macros = clamp_macros(target.macros)
        if target_macros != target.macros:
            _logger.warning("Clamped negative target macros for meal %s", meal.id)
        if meal.is_legacy:
            result = self._scale_proportionally(meal, target, target_macros)
        else:
            result = self._scale_ingredients(meal, target, target_macros, catalog)
        if self.debug:
            _logger.info(
                "Scaled meal %s: mode=%s multiplier=%.3f iterations=%s "
                "max_error=%.4f exact=%s",
                meal.id,
                result.mode.value,
                result.multiplier,
                result.iterations,
                result.max_error,
                result.exact_match,
            )
        return result

    def _scale_proportionally(
        self, meal: MealTemplate, target: MacroTarget, target_macros: MacroProfile
    ) -> ScaledMeal:
        base = clamp_macros(meal.macros)
        ratio = target_macros.calories / base.calories if base.calories > 0 else 1.0
        scaled = scale_macros(base, ratio)
        error = max_relative_error(scaled, target_macros)
        displayed = round_for_display(scaled)
        exact = self._use_exact_match(target)
        return ScaledMeal(
            template=meal,
            ingredients=(),
            macros=target_macros if exact else displayed,
            ingredient_macros=displayed,
            multiplier=ratio,
            mode=ScalingMode.LEGACY_PROPORTIONAL,
            iterations=0,
            max_error=error,
            converged=error < self.tolerance,
            exact_match=exact,
            is_last_meal=target.is_last_meal,
        )

    def _scale_ingredients(
        self,
        meal: MealTemplate,
        target: MacroTarget,
        target_macros: MacroProfile,
        catalog: IngredientCatalog,
    ) -> ScaledMeal:
        resolved = resolve_ingredients(meal.ingredients, catalog)
        base = base_macros(resolved)
        budget = (
            self.last_meal_max_iterations if target.is_last_meal else self.max_iterations
        )
        state = self._search(base, target_macros, budget)
        ingredients = _scaled_references(resolved, state.best_multiplier)
        achieved = macros_for_amounts(resolved, [ref.amount for ref in ingredients])
        error = max_relative_error(achieved, target_macros)
        displayed = round_for_display(achieved)
        exact = self._use_exact_match(target)
        return ScaledMeal(
            template=meal,
            ingredients=ingredients,
            macros=target_macros if exact else displayed,
            ingredient_macros=displayed,
            multiplier=state.best_multiplier,
            mode=ScalingMode.INGREDIENT,
            iterations=state.iterations,
            max_error=error,
            converged=error < self.tolerance,
            exact_match=exact,
            is_last_meal=target.is_last_meal,
        )

    def _search(
        self, base: MacroProfile, target: MacroProfile, budget: int
    ) -> _SearchState:
        """Run the damped multiplier search and return the final accumulator."""
        initial = _initial_multiplier(base, target)
        state = _SearchState(
            multiplier=initial,
            best_multiplier=initial,
            best_error=math.inf,
            iterations=0,
            converged=False,
        )
        while not _finished(state, budget):
            state = self._advance(state, base, target)
        return state

    def _advance(
        self, state: _SearchState, base: MacroProfile, target: MacroProfile
    ) -> _SearchState:
        achieved = scale_macros(base, state.multiplier)
        error = max_relative_error(achieved, target)
        improved = error < state.best_error
        correction = self.damping * average_ratio(achieved, target) + (1 - self.damping)
        return _SearchState(
            multiplier=state.multiplier * correction,
            best_multiplier=state.multiplier if improved else state.best_multiplier,
            best_error=error if improved else state.best_error,
            iterations=state.iterations + 1,
            converged=error < self.tolerance,
        )

    def _use_exact_match(self, target: MacroTarget) -> bool:
        return target.is_last_meal and self.exact_last_meal


def _initial_multiplier(base: MacroProfile, target: MacroProfile) -> float:
    """Calorie ratio, or the mean per-macro ratio when calories give nothing."""
    if base.calories > 0 and target.calories > 0:
        return target.calories / base.calories
    ratios = [
        getattr(target, name) / getattr(base, name)
        for name in _MACRO_FIELDS
        if getattr(base, name) > 0 and getattr(target, name) > 0
    ]
    if ratios:
        return sum(ratios) / len(ratios)
    return 0.0 if base.calories > 0 else 1.0


def _finished(state: _SearchState, budget: int) -> bool:
    return state.converged or state.iterations >= budget


def _scaled_references(
    resolved: tuple[ResolvedIngredient, ...], multiplier: float
) -> tuple[IngredientReference, ...]:
    return tuple(
        IngredientReference(
            ingredient_id=item.reference.ingredient_id,
            amount=float(max(0, round(item.reference.amount * multiplier))),
        )
        for item in resolved
    )


def scale_meal_to_target(
    meal: MealTemplate,
    target: MacroTarget,
    catalog: IngredientCatalog,
    scaler: MealScaler | None = None,
) -> ScaledMeal:
    """Scale a meal with the default (or given) scaler configuration."""
    return (scaler or MealScaler()).scale(meal, target, catalog)

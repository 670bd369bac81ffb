"""Ranking candidate meals by how well they fit a target."""

import logging
from collections.abc import Sequence
from dataclasses import replace

from macro_planner.domain.meals import (
    FitBand,
    MacroTarget,
    MealTemplate,
    RankedMeal,
)
from macro_planner.domain.nutrition import MacroProfile
from macro_planner.services.catalog import IngredientCatalog
from macro_planner.services.scaling import MealScaler, relative_error

FIT_WEIGHTS = {
    "calories": 0.4,
    "protein_g": 0.3,
    "carbs_g": 0.15,
    "fat_g": 0.15,
}

_logger = logging.getLogger(__name__)


def calculate_fit_score(achieved: MacroProfile, target: MacroProfile) -> float:
    """Score 0-100: 100 minus the weighted relative deviation in percent."""
    deviation = sum(
        weight * relative_error(getattr(achieved, name), getattr(target, name))
        for name, weight in FIT_WEIGHTS.items()
    )
    return max(0.0, 100.0 - deviation * 100.0)


def fit_band(fit_percent: float) -> FitBand:
    if fit_percent >= 98:
        return FitBand.EXCELLENT
    if fit_percent >= 95:
        return FitBand.GOOD
    if fit_percent >= 90:
        return FitBand.ACCEPTABLE
    return FitBand.POOR


def rank_meals_by_fit(
    meals: Sequence[MealTemplate],
    target: MacroTarget,
    catalog: IngredientCatalog,
    scaler: MealScaler | None = None,
    *,
    is_last_meal: bool | None = None,
) -> list[RankedMeal]:
    """Scale every meal to ``target`` and order them by fit score.

    All meals are returned; equal scores keep their input order.
    """
    resolved_scaler = scaler or MealScaler()
    if is_last_meal is not None and is_last_meal != target.is_last_meal:
        target = replace(target, is_last_meal=is_last_meal)
    ranked: list[RankedMeal] = []
    for meal in meals:
        scaled = resolved_scaler.scale(meal, target, catalog)
        fit_percent = max(0.0, 100.0 - scaled.max_error * 100.0)
        ranked.append(
            RankedMeal(
                meal=meal,
                scaled=scaled,
                fit_score=calculate_fit_score(scaled.ingredient_macros, target.macros),
                fit_percent=fit_percent,
                band=fit_band(fit_percent),
            )
        )
    ranked.sort(key=lambda entry: entry.fit_score, reverse=True)
    if resolved_scaler.debug:
        _logger.info(
            "Ranked %s meals: excellent=%s good=%s",
            len(ranked),
            sum(1 for entry in ranked if entry.band is FitBand.EXCELLENT),
            sum(1 for entry in ranked if entry.band is FitBand.GOOD),
        )
    return ranked

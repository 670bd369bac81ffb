"""Tests for fit ranking."""

import pytest

from macro_planner.domain.meals import (
    FitBand,
    IngredientReference,
    MacroTarget,
    MealTemplate,
)
from macro_planner.domain.nutrition import MacroProfile
from macro_planner.services.catalog import InMemoryIngredientCatalog
from macro_planner.services.ranking import calculate_fit_score, fit_band, rank_meals_by_fit
from tests.conftest import chicken_and_rice

TARGET = MacroTarget(calories=750, protein_g=45, fat_g=30, carbs_g=75)


def _chicken_only() -> MealTemplate:
    return MealTemplate(
        id="chicken",
        name="Plain chicken",
        macros=MacroProfile(calories=200, protein_g=18, fat_g=8, carbs_g=5),
        ingredients=(IngredientReference("chicken", 100),),
    )


def test_fit_score_is_100_for_exact_match() -> None:
    macros = MacroProfile(calories=500, protein_g=30, fat_g=20, carbs_g=50)

    assert calculate_fit_score(macros, macros) == 100.0


def test_fit_score_weights_calories_most() -> None:
    target = MacroProfile(calories=500, protein_g=30, fat_g=20, carbs_g=50)
    calories_off = MacroProfile(calories=550, protein_g=30, fat_g=20, carbs_g=50)
    fat_off = MacroProfile(calories=500, protein_g=30, fat_g=22, carbs_g=50)

    assert calculate_fit_score(calories_off, target) == pytest.approx(96.0)
    assert calculate_fit_score(fat_off, target) == pytest.approx(98.5)


def test_fit_score_never_negative() -> None:
    target = MacroProfile(calories=100, protein_g=10, fat_g=5, carbs_g=10)
    wild = MacroProfile(calories=1000, protein_g=100, fat_g=50, carbs_g=100)

    assert calculate_fit_score(wild, target) == 0.0


@pytest.mark.parametrize(
    ("percent", "band"),
    [
        (99.0, FitBand.EXCELLENT),
        (98.0, FitBand.EXCELLENT),
        (96.5, FitBand.GOOD),
        (90.0, FitBand.ACCEPTABLE),
        (42.0, FitBand.POOR),
    ],
)
def test_fit_band_thresholds(percent: float, band: FitBand) -> None:
    assert fit_band(percent) is band


def test_rank_orders_by_fit_and_keeps_every_meal(
    catalog: InMemoryIngredientCatalog,
) -> None:
    meals = [_chicken_only(), chicken_and_rice()]

    ranked = rank_meals_by_fit(meals, TARGET, catalog)

    assert [entry.meal.id for entry in ranked] == ["chicken-rice", "chicken"]
    assert ranked[0].fit_score == pytest.approx(100.0)
    assert ranked[0].band is FitBand.EXCELLENT
    assert ranked[1].fit_score < ranked[0].fit_score
    assert ranked[1].band is FitBand.POOR


def test_rank_pairs_scaled_meal_with_original(
    catalog: InMemoryIngredientCatalog,
) -> None:
    original = chicken_and_rice()

    ranked = rank_meals_by_fit([original], TARGET, catalog)

    assert ranked[0].meal is original
    assert ranked[0].scaled.template is original
    assert ranked[0].scaled.ingredients != original.ingredients


def test_rank_keeps_input_order_for_ties(catalog: InMemoryIngredientCatalog) -> None:
    first = chicken_and_rice()
    second = MealTemplate(
        id="chicken-rice-copy",
        name="Chicken and rice again",
        macros=first.macros,
        ingredients=first.ingredients,
    )

    ranked = rank_meals_by_fit([second, first], TARGET, catalog)

    assert [entry.meal.id for entry in ranked] == ["chicken-rice-copy", "chicken-rice"]


def test_rank_applies_last_meal_flag(catalog: InMemoryIngredientCatalog) -> None:
    ranked = rank_meals_by_fit(
        [_chicken_only()], TARGET, catalog, is_last_meal=True
    )

    scaled = ranked[0].scaled
    assert scaled.is_last_meal is True
    assert scaled.exact_match is True
    assert scaled.macros == TARGET.macros
    assert ranked[0].fit_score < 90.0
    assert ranked[0].fit_percent < 90.0


def test_rank_last_meal_orders_by_ingredient_fit(
    catalog: InMemoryIngredientCatalog,
) -> None:
    oil_only = MealTemplate(
        id="oil",
        name="Olive oil",
        macros=MacroProfile(calories=884, protein_g=0, fat_g=100, carbs_g=0),
        ingredients=(IngredientReference("oil", 100),),
    )

    ranked = rank_meals_by_fit(
        [oil_only, chicken_and_rice()], TARGET, catalog, is_last_meal=True
    )

    assert [entry.meal.id for entry in ranked] == ["chicken-rice", "oil"]
    assert ranked[0].fit_score == pytest.approx(100.0)
    assert ranked[1].fit_score < 50.0
    assert all(entry.scaled.macros == TARGET.macros for entry in ranked)


def test_rank_empty_list(catalog: InMemoryIngredientCatalog) -> None:
    assert rank_meals_by_fit([], TARGET, catalog) == []

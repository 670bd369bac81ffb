"""Shared test fixtures."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from uuid import UUID

import pytest

from macro_planner.config import Settings
from macro_planner.containers import AppContainer
from macro_planner.domain.meals import IngredientReference, MealTemplate
from macro_planner.domain.nutrition import Ingredient, IngredientCategory, MacroProfile
from macro_planner.domain.progress import (
    EnergyLevel,
    HungerLevel,
    WeeklyProgressRecord,
    WorkoutQuality,
)
from macro_planner.services.catalog import InMemoryIngredientCatalog
from macro_planner.services.progress import ProgressAnalyzer, classify_trend
from macro_planner.services.reviews import ProgressRepository, ProgressService
from macro_planner.services.scaling import MealScaler

CHICKEN = Ingredient(
    id="chicken",
    name="Chicken thigh",
    category=IngredientCategory.PROTEIN,
    per_100=MacroProfile(calories=200, protein_g=18, fat_g=8, carbs_g=5),
)
RICE = Ingredient(
    id="rice",
    name="Rice pilaf",
    category=IngredientCategory.CARBOHYDRATE,
    per_100=MacroProfile(calories=200, protein_g=8, fat_g=8, carbs_g=30),
)
OIL = Ingredient(
    id="oil",
    name="Olive oil",
    category=IngredientCategory.FAT,
    per_100=MacroProfile(calories=884, protein_g=0, fat_g=100, carbs_g=0),
)
WATER = Ingredient(
    id="water",
    name="Water",
    category=IngredientCategory.CUSTOM,
    per_100=MacroProfile(calories=0, protein_g=0, fat_g=0, carbs_g=0),
)


def chicken_and_rice() -> MealTemplate:
    """100 g chicken and 150 g rice: 500 kcal, 30 P, 20 F, 50 C."""
    return MealTemplate(
        id="chicken-rice",
        name="Chicken and rice",
        macros=MacroProfile(calories=500, protein_g=30, fat_g=20, carbs_g=50),
        ingredients=(
            IngredientReference("chicken", 100),
            IngredientReference("rice", 150),
        ),
    )


def make_week(  # noqa: PLR0913
    week_number: int,
    weight_change_kg: float,
    *,
    adherence: float = 95.0,
    average_calories: float = 2000.0,
    energy: tuple[EnergyLevel, ...] | None = None,
    hunger: tuple[HungerLevel, ...] | None = None,
    quality: tuple[WorkoutQuality, ...] | None = None,
) -> WeeklyProgressRecord:
    start = 80.0 - week_number
    return WeeklyProgressRecord(
        week_number=week_number,
        start_weight_kg=start,
        end_weight_kg=start + weight_change_kg,
        weight_change_kg=weight_change_kg,
        days_logged=7,
        average_calories=average_calories,
        target_calories=2000.0,
        calorie_adherence=adherence,
        average_protein_g=150,
        average_carbs_g=200,
        average_fat_g=65,
        trend=classify_trend(weight_change_kg),
        energy_levels=energy,
        hunger_levels=hunger,
        workout_quality=quality,
    )


@dataclass
class InMemoryProgressRepository(ProgressRepository):
    """In-memory weekly history and goals for tests."""

    records: dict[UUID, list[WeeklyProgressRecord]] = field(default_factory=dict)
    goals: dict[UUID, MacroProfile] = field(default_factory=dict)
    goal_writes: list[tuple[UUID, MacroProfile]] = field(default_factory=list)

    def list_weekly_records(
        self, user_id: UUID, limit: int
    ) -> list[WeeklyProgressRecord]:
        return self.records.get(user_id, [])[-limit:]

    def append_weekly_record(
        self, user_id: UUID, record: WeeklyProgressRecord
    ) -> WeeklyProgressRecord:
        self.records.setdefault(user_id, []).append(record)
        return record

    def get_macro_goals(self, user_id: UUID) -> MacroProfile | None:
        return self.goals.get(user_id)

    def set_macro_goals(self, user_id: UUID, goals: MacroProfile) -> MacroProfile:
        self.goals[user_id] = goals
        self.goal_writes.append((user_id, goals))
        return goals


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("macro_planner")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def catalog() -> InMemoryIngredientCatalog:
    return InMemoryIngredientCatalog.from_ingredients([CHICKEN, RICE, OIL, WATER])


@pytest.fixture
def meal() -> MealTemplate:
    return chicken_and_rice()


@pytest.fixture
def scaler() -> MealScaler:
    return MealScaler()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
    )


@pytest.fixture
def progress_repository() -> InMemoryProgressRepository:
    return InMemoryProgressRepository()


@pytest.fixture
def container(
    settings: Settings,
    catalog: InMemoryIngredientCatalog,
    progress_repository: InMemoryProgressRepository,
) -> AppContainer:
    analyzer = ProgressAnalyzer()
    return AppContainer(
        settings=settings,
        catalog=catalog,
        meal_scaler=MealScaler(),
        progress_analyzer=analyzer,
        progress_service=ProgressService(progress_repository, analyzer),
    )

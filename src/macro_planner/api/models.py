"""Pydantic request models for the HTTP API."""

from datetime import date

from pydantic import BaseModel, Field

from macro_planner.domain.meals import IngredientReference, MacroTarget
from macro_planner.domain.nutrition import MacroProfile
from macro_planner.domain.progress import (
    DailyLogEntry,
    EnergyLevel,
    HungerLevel,
    Trend,
    WeeklyProgressRecord,
    WorkoutQuality,
)
from macro_planner.domain.targets import (
    Goal,
    Lifestyle,
    MealSlot,
    Occupation,
    Sex,
    UserProfile,
)


class MacrosPayload(BaseModel):
    """Calories and macro grams."""

    calories: float
    protein_g: float
    fat_g: float
    carbs_g: float

    def to_domain(self) -> MacroProfile:
        return MacroProfile(
            calories=self.calories,
            protein_g=self.protein_g,
            fat_g=self.fat_g,
            carbs_g=self.carbs_g,
        )


class TargetPayload(MacrosPayload):
    """Macro target for one meal."""

    is_last_meal: bool = False

    def to_target(self) -> MacroTarget:
        return MacroTarget(
            calories=self.calories,
            protein_g=self.protein_g,
            fat_g=self.fat_g,
            carbs_g=self.carbs_g,
            is_last_meal=self.is_last_meal,
        )


class IngredientAmountPayload(BaseModel):
    ingredient_id: str
    amount: float

    def to_domain(self) -> IngredientReference:
        return IngredientReference(ingredient_id=self.ingredient_id, amount=self.amount)


class MealPayload(BaseModel):
    """Meal template; ``macros`` is required only without ingredients."""

    id: str
    name: str
    ingredients: list[IngredientAmountPayload] = Field(default_factory=list)
    macros: MacrosPayload | None = None
    is_custom: bool = False
    is_global: bool = False


class ProfilePayload(BaseModel):
    """User profile used for target calculation."""

    sex: Sex
    weight_kg: float = Field(gt=0)
    height_cm: float = Field(gt=0)
    age: int = Field(gt=0)
    training_days_per_week: int = Field(ge=0)
    goal: Goal
    body_fat_percentage: float | None = Field(default=None, ge=0, lt=100)
    lean_body_mass_kg: float | None = Field(default=None, gt=0)
    daily_steps: int | None = Field(default=None, ge=0)
    occupation: Occupation | None = None
    lifestyle: Lifestyle | None = None
    meals_per_day: int = Field(default=3, ge=2, le=5)
    meal_distribution: dict[MealSlot, float] | None = None

    def to_domain(self) -> UserProfile:
        return UserProfile(
            sex=self.sex,
            weight_kg=self.weight_kg,
            height_cm=self.height_cm,
            age=self.age,
            training_days_per_week=self.training_days_per_week,
            goal=self.goal,
            body_fat_percentage=self.body_fat_percentage,
            lean_body_mass_kg=self.lean_body_mass_kg,
            daily_steps=self.daily_steps,
            occupation=self.occupation,
            lifestyle=self.lifestyle,
            meals_per_day=self.meals_per_day,
            meal_distribution=self.meal_distribution,
        )


class WeeklyRecordPayload(BaseModel):
    """A stored weekly progress summary."""

    week_number: int = Field(ge=1)
    start_weight_kg: float
    end_weight_kg: float
    weight_change_kg: float
    days_logged: int = Field(ge=0, le=7)
    average_calories: float
    target_calories: float
    calorie_adherence: float
    average_protein_g: float = 0.0
    average_carbs_g: float = 0.0
    average_fat_g: float = 0.0
    trend: Trend = Trend.MAINTAINING
    week_start: date | None = None
    workouts_done: int = 0
    workouts_planned: int = 0
    workout_adherence: float = 0.0
    energy_levels: list[EnergyLevel] | None = None
    hunger_levels: list[HungerLevel] | None = None
    workout_quality: list[WorkoutQuality] | None = None

    def to_domain(self) -> WeeklyProgressRecord:
        return WeeklyProgressRecord(
            week_number=self.week_number,
            start_weight_kg=self.start_weight_kg,
            end_weight_kg=self.end_weight_kg,
            weight_change_kg=self.weight_change_kg,
            days_logged=self.days_logged,
            average_calories=self.average_calories,
            target_calories=self.target_calories,
            calorie_adherence=self.calorie_adherence,
            average_protein_g=self.average_protein_g,
            average_carbs_g=self.average_carbs_g,
            average_fat_g=self.average_fat_g,
            trend=self.trend,
            week_start=self.week_start,
            workouts_done=self.workouts_done,
            workouts_planned=self.workouts_planned,
            workout_adherence=self.workout_adherence,
            energy_levels=_as_tuple(self.energy_levels),
            hunger_levels=_as_tuple(self.hunger_levels),
            workout_quality=_as_tuple(self.workout_quality),
        )


class DailyLogPayload(BaseModel):
    """One logged day."""

    day: date
    macros: MacrosPayload
    weight_kg: float | None = None
    energy: EnergyLevel | None = None
    hunger: HungerLevel | None = None
    trained: bool = False
    workout_quality: WorkoutQuality | None = None

    def to_domain(self) -> DailyLogEntry:
        return DailyLogEntry(
            day=self.day,
            macros=self.macros.to_domain(),
            weight_kg=self.weight_kg,
            energy=self.energy,
            hunger=self.hunger,
            trained=self.trained,
            workout_quality=self.workout_quality,
        )


class DailyTargetsRequest(BaseModel):
    profile: ProfilePayload
    advanced: bool | None = None


class MealTargetRequest(BaseModel):
    """Remaining target for the next meal.

    With ``slot`` and a profile the distribution weights of pending slots are
    used; otherwise the remainder is split evenly over ``meals_remaining``.
    """

    daily: MacrosPayload
    logged: MacrosPayload | None = None
    meals_remaining: int | None = None
    weights: list[float] | None = None
    profile: ProfilePayload | None = None
    slot: MealSlot | None = None
    logged_by_slot: dict[MealSlot, MacrosPayload] = Field(default_factory=dict)


class DistributionRequest(BaseModel):
    profile: ProfilePayload
    daily: MacrosPayload | None = None


class ScaleMealRequest(BaseModel):
    meal: MealPayload
    target: TargetPayload


class RankMealsRequest(BaseModel):
    meals: list[MealPayload]
    target: TargetPayload
    is_last_meal: bool | None = None


class AnalyzeProgressRequest(BaseModel):
    history: list[WeeklyRecordPayload]
    goal: Goal


class AdjustGoalsRequest(BaseModel):
    current: MacrosPayload
    history: list[WeeklyRecordPayload]
    goal: Goal


class AdaptationRequest(BaseModel):
    history: list[WeeklyRecordPayload]
    goal: Goal
    sex: Sex


class RecordWeekRequest(BaseModel):
    """Either a ready weekly summary or the week's daily logs."""

    record: WeeklyRecordPayload | None = None
    week_number: int | None = Field(default=None, ge=1)
    entries: list[DailyLogPayload] = Field(default_factory=list)
    target_calories: float | None = None
    fallback_weight_kg: float | None = None
    workouts_planned: int = 0


class ReviewRequest(BaseModel):
    goal: Goal
    sex: Sex


def _as_tuple(values: list | None) -> tuple | None:
    if values is None:
        return None
    return tuple(values)

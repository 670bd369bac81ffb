"""Domain models for energy expenditure and daily targets."""

from dataclasses import dataclass
from enum import Enum

from macro_planner.domain.nutrition import MacroProfile


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"


class Goal(str, Enum):
    """Body-weight goal selected by the user."""

    RAPID_LOSS = "rapid_loss"
    MODERATE_LOSS = "moderate_loss"
    MAINTENANCE = "maintenance"
    MODERATE_GAIN = "moderate_gain"
    RAPID_GAIN = "rapid_gain"

    @property
    def is_loss(self) -> bool:
        return self in {Goal.RAPID_LOSS, Goal.MODERATE_LOSS}

    @property
    def is_gain(self) -> bool:
        return self in {Goal.MODERATE_GAIN, Goal.RAPID_GAIN}


class Occupation(str, Enum):
    DESK_JOB = "desk_job"
    STANDING_JOB = "standing_job"
    WALKING_JOB = "walking_job"
    PHYSICAL_JOB = "physical_job"


class Lifestyle(str, Enum):
    SEDENTARY = "sedentary"
    LIGHTLY_ACTIVE = "lightly_active"
    MODERATELY_ACTIVE = "moderately_active"
    VERY_ACTIVE = "very_active"
    EXTREMELY_ACTIVE = "extremely_active"


class BmrMethod(str, Enum):
    MIFFLIN_ST_JEOR = "mifflin_st_jeor"
    KATCH_MCARDLE = "katch_mcardle"


class MealSlot(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    SNACK = "snack"
    DINNER = "dinner"


@dataclass(frozen=True)
class UserProfile:
    """Inputs for target calculation.

    ``meal_distribution`` holds per-slot percentages (0-100) configured by the
    user; when absent the default distribution for the goal is used.
    """

    sex: Sex
    weight_kg: float
    height_cm: float
    age: int
    training_days_per_week: int
    goal: Goal
    body_fat_percentage: float | None = None
    lean_body_mass_kg: float | None = None
    daily_steps: int | None = None
    occupation: Occupation | None = None
    lifestyle: Lifestyle | None = None
    meals_per_day: int = 3
    meal_distribution: dict[MealSlot, float] | None = None


@dataclass(frozen=True)
class ActivityBreakdown:
    """Activity multiplier split into its parts."""

    neat_factor: float
    exercise_factor: float
    total_factor: float


@dataclass(frozen=True)
class DailyTargets:
    """Energy expenditure and daily macro goals for a profile."""

    bmr: float
    bmr_method: BmrMethod
    tdee: float
    activity: ActivityBreakdown
    target_calories: float
    macros: MacroProfile
    bmi: float
    estimated_body_fat_percentage: float
    lean_body_mass_kg: float | None = None
    metabolic_adjustment: int = 0

"""Domain models for weekly progress and metabolic adaptation."""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from macro_planner.domain.nutrition import MacroProfile


class Trend(str, Enum):
    LOSING_FAST = "losing_fast"
    LOSING_MODERATE = "losing_moderate"
    LOSING_SLOW = "losing_slow"
    MAINTAINING = "maintaining"
    GAINING_SLOW = "gaining_slow"
    GAINING_MODERATE = "gaining_moderate"
    GAINING_FAST = "gaining_fast"


class EnergyLevel(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class HungerLevel(str, Enum):
    VERY_HUNGRY = "very_hungry"
    HUNGRY = "hungry"
    SATISFIED = "satisfied"
    FULL = "full"
    TOO_FULL = "too_full"


class WorkoutQuality(str, Enum):
    POOR = "poor"
    OK = "ok"
    GOOD = "good"
    EXCELLENT = "excellent"


class AdjustmentType(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    NONE = "none"


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AdaptationLevel(str, Enum):
    NONE = "none"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


@dataclass(frozen=True)
class DailyLogEntry:
    """One logged day, as supplied by the persistence layer."""

    day: date
    macros: MacroProfile
    weight_kg: float | None = None
    energy: EnergyLevel | None = None
    hunger: HungerLevel | None = None
    trained: bool = False
    workout_quality: WorkoutQuality | None = None


@dataclass(frozen=True)
class WeeklyProgressRecord:
    """Summary of one elapsed week. Never mutated after creation."""

    week_number: int
    start_weight_kg: float
    end_weight_kg: float
    weight_change_kg: float
    days_logged: int
    average_calories: float
    target_calories: float
    calorie_adherence: float
    average_protein_g: float
    average_carbs_g: float
    average_fat_g: float
    trend: Trend
    week_start: date | None = None
    workouts_done: int = 0
    workouts_planned: int = 0
    workout_adherence: float = 0.0
    energy_levels: tuple[EnergyLevel, ...] | None = None
    hunger_levels: tuple[HungerLevel, ...] | None = None
    workout_quality: tuple[WorkoutQuality, ...] | None = None


@dataclass(frozen=True)
class ProgressAnalysis:
    """Whether and how the daily calorie target should change."""

    needs_adjustment: bool
    adjustment_type: AdjustmentType
    adjustment_amount: int
    confidence: Confidence
    reason: str
    warnings: tuple[str, ...] = ()
    average_weekly_change_kg: float | None = None
    average_adherence: float | None = None
    target_weekly_change_kg: float | None = None


@dataclass(frozen=True)
class AdaptationFlags:
    """Independent signals of metabolic adaptation."""

    weight_stagnant: bool
    low_calories_without_loss: bool
    low_energy: bool
    high_hunger: bool
    poor_performance: bool

    @property
    def active_count(self) -> int:
        return sum(
            (
                self.weight_stagnant,
                self.low_calories_without_loss,
                self.low_energy,
                self.high_hunger,
                self.poor_performance,
            )
        )


@dataclass(frozen=True)
class MetabolicAdaptationResult:
    """Adaptation level derived from the last four weeks."""

    level: AdaptationLevel
    is_adapted: bool
    recommended_action: str
    flags: AdaptationFlags | None = None

"""Detection of metabolic adaptation from several weeks of progress."""

import logging
from collections.abc import Callable, Sequence
from typing import TypeVar

from macro_planner.domain.progress import (
    AdaptationFlags,
    AdaptationLevel,
    EnergyLevel,
    HungerLevel,
    MetabolicAdaptationResult,
    WeeklyProgressRecord,
    WorkoutQuality,
)
from macro_planner.domain.targets import Goal, Sex

REQUIRED_WEEKS = 4
STAGNATION_THRESHOLD_KG = 0.1

LOW_CALORIE_FLOOR = {
    Sex.FEMALE: 1400,
    Sex.MALE: 1800,
}

_HIGH_HUNGER = {HungerLevel.HUNGRY, HungerLevel.VERY_HUNGRY}
_WEAK_WORKOUTS = {WorkoutQuality.POOR, WorkoutQuality.OK}

_RECOMMENDATIONS = {
    AdaptationLevel.SEVERE: (
        "Severe metabolic adaptation detected. Start a reverse diet: raise "
        "calories gradually over several weeks before resuming the deficit."
    ),
    AdaptationLevel.MODERATE: (
        "Moderate metabolic adaptation detected. Take a 2-week diet break at "
        "maintenance calories."
    ),
    AdaptationLevel.MILD: (
        "Mild signs of metabolic adaptation. Add 1-2 higher-carbohydrate refeed "
        "days per week."
    ),
    AdaptationLevel.NONE: "No signs of metabolic adaptation. Keep following the plan.",
}

T = TypeVar("T")

_logger = logging.getLogger(__name__)


def detect_metabolic_adaptation(
    history: Sequence[WeeklyProgressRecord],
    goal: Goal,
    sex: Sex,
    *,
    debug: bool = False,
) -> MetabolicAdaptationResult:
    """Count adaptation flags over the last four weeks."""
    if len(history) < REQUIRED_WEEKS:
        return MetabolicAdaptationResult(
            level=AdaptationLevel.NONE,
            is_adapted=False,
            recommended_action=(
                f"At least {REQUIRED_WEEKS} weeks of data are needed to detect "
                "metabolic adaptation."
            ),
        )

    recent = list(history)[-REQUIRED_WEEKS:]
    flags = evaluate_flags(recent, goal, sex)
    level = adaptation_level(flags.active_count)
    if debug:
        _logger.info(
            "Adaptation check: goal=%s flags=%s level=%s",
            goal.value,
            flags.active_count,
            level.value,
        )
    return MetabolicAdaptationResult(
        level=level,
        is_adapted=level is not AdaptationLevel.NONE,
        recommended_action=_RECOMMENDATIONS[level],
        flags=flags,
    )


def evaluate_flags(
    recent: Sequence[WeeklyProgressRecord], goal: Goal, sex: Sex
) -> AdaptationFlags:
    mean_change = sum(abs(week.weight_change_kg) for week in recent) / len(recent)
    stagnant = goal.is_loss and mean_change < STAGNATION_THRESHOLD_KG
    average_calories = sum(week.average_calories for week in recent) / len(recent)
    return AdaptationFlags(
        weight_stagnant=stagnant,
        low_calories_without_loss=stagnant and average_calories < LOW_CALORIE_FLOOR[sex],
        low_energy=_every_week(
            recent,
            lambda week: week.energy_levels,
            lambda value: value is EnergyLevel.LOW,
        ),
        high_hunger=_every_week(
            recent,
            lambda week: week.hunger_levels,
            lambda value: value in _HIGH_HUNGER,
        ),
        poor_performance=_every_week(
            recent,
            lambda week: week.workout_quality,
            lambda value: value in _WEAK_WORKOUTS,
        ),
    )


def adaptation_level(active_flags: int) -> AdaptationLevel:
    if active_flags >= 4:
        return AdaptationLevel.SEVERE
    if active_flags == 3:
        return AdaptationLevel.MODERATE
    if active_flags == 2:
        return AdaptationLevel.MILD
    return AdaptationLevel.NONE


def _every_week(
    weeks: Sequence[WeeklyProgressRecord],
    signal: Callable[[WeeklyProgressRecord], tuple[T, ...] | None],
    matches: Callable[[T], bool],
) -> bool:
    """True when every week has data and more than half of it matches.

    Missing signal data never counts towards a flag.
    """
    for week in weeks:
        values = signal(week)
        if not values:
            return False
        if sum(1 for value in values if matches(value)) * 2 <= len(values):
            return False
    return True

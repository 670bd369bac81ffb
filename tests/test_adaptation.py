"""Tests for metabolic adaptation detection."""

import pytest

from macro_planner.domain.progress import (
    AdaptationLevel,
    EnergyLevel,
    HungerLevel,
    WorkoutQuality,
)
from macro_planner.domain.targets import Goal, Sex
from macro_planner.services.adaptation import (
    adaptation_level,
    detect_metabolic_adaptation,
)
from tests.conftest import make_week

LOW_ENERGY = (EnergyLevel.LOW,) * 5 + (EnergyLevel.NORMAL,) * 2
HUNGRY = (HungerLevel.HUNGRY, HungerLevel.VERY_HUNGRY, HungerLevel.HUNGRY)
POOR_WORKOUTS = (WorkoutQuality.POOR, WorkoutQuality.OK, WorkoutQuality.GOOD)


def _stalled_weeks(count: int = 4, **signals):  # type: ignore[no-untyped-def]
    return [
        make_week(number, 0.0, average_calories=1200, **signals)
        for number in range(1, count + 1)
    ]


def test_needs_four_weeks() -> None:
    result = detect_metabolic_adaptation(
        _stalled_weeks(3), Goal.MODERATE_LOSS, Sex.FEMALE
    )

    assert result.level is AdaptationLevel.NONE
    assert result.is_adapted is False
    assert result.flags is None
    assert "4 weeks" in result.recommended_action


def test_all_signals_mean_severe_adaptation() -> None:
    history = _stalled_weeks(
        energy=LOW_ENERGY, hunger=HUNGRY, quality=POOR_WORKOUTS
    )

    result = detect_metabolic_adaptation(history, Goal.MODERATE_LOSS, Sex.FEMALE)

    assert result.level is AdaptationLevel.SEVERE
    assert result.is_adapted is True
    assert result.flags is not None
    assert result.flags.active_count == 5
    assert "reverse diet" in result.recommended_action


def test_missing_signals_never_trigger_flags() -> None:
    result = detect_metabolic_adaptation(
        _stalled_weeks(), Goal.MODERATE_LOSS, Sex.FEMALE
    )

    assert result.flags is not None
    assert result.flags.weight_stagnant is True
    assert result.flags.low_calories_without_loss is True
    assert result.flags.low_energy is False
    assert result.flags.high_hunger is False
    assert result.flags.poor_performance is False
    assert result.level is AdaptationLevel.MILD
    assert "refeed" in result.recommended_action


def test_three_flags_mean_moderate_adaptation() -> None:
    result = detect_metabolic_adaptation(
        _stalled_weeks(energy=LOW_ENERGY), Goal.RAPID_LOSS, Sex.MALE
    )

    assert result.level is AdaptationLevel.MODERATE
    assert "diet break" in result.recommended_action


def test_signal_must_hold_every_week() -> None:
    history = _stalled_weeks(energy=LOW_ENERGY)
    history[2] = make_week(3, 0.0, average_calories=1200)

    result = detect_metabolic_adaptation(history, Goal.MODERATE_LOSS, Sex.FEMALE)

    assert result.flags is not None
    assert result.flags.low_energy is False


def test_half_of_entries_is_not_a_majority() -> None:
    history = _stalled_weeks(energy=(EnergyLevel.LOW, EnergyLevel.NORMAL))

    result = detect_metabolic_adaptation(history, Goal.MODERATE_LOSS, Sex.FEMALE)

    assert result.flags is not None
    assert result.flags.low_energy is False


def test_stagnation_only_counts_on_loss_goal() -> None:
    result = detect_metabolic_adaptation(
        _stalled_weeks(), Goal.MAINTENANCE, Sex.FEMALE
    )

    assert result.flags is not None
    assert result.flags.weight_stagnant is False
    assert result.flags.low_calories_without_loss is False
    assert result.level is AdaptationLevel.NONE
    assert result.is_adapted is False


def test_low_calorie_floor_depends_on_sex() -> None:
    history = [make_week(n, 0.0, average_calories=1700) for n in range(1, 5)]

    male = detect_metabolic_adaptation(history, Goal.MODERATE_LOSS, Sex.MALE)
    female = detect_metabolic_adaptation(history, Goal.MODERATE_LOSS, Sex.FEMALE)

    assert male.flags is not None and male.flags.low_calories_without_loss is True
    assert female.flags is not None and female.flags.low_calories_without_loss is False


def test_only_last_four_weeks_are_considered() -> None:
    history = [make_week(1, -2.0), *_stalled_weeks()]

    result = detect_metabolic_adaptation(history, Goal.MODERATE_LOSS, Sex.FEMALE)

    assert result.flags is not None
    assert result.flags.weight_stagnant is True


@pytest.mark.parametrize(
    ("flags", "level"),
    [
        (0, AdaptationLevel.NONE),
        (1, AdaptationLevel.NONE),
        (2, AdaptationLevel.MILD),
        (3, AdaptationLevel.MODERATE),
        (4, AdaptationLevel.SEVERE),
        (5, AdaptationLevel.SEVERE),
    ],
)
def test_adaptation_level(flags: int, level: AdaptationLevel) -> None:
    assert adaptation_level(flags) is level

"""Weekly progress summaries and calorie adjustment decisions."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from macro_planner.domain.nutrition import MacroProfile
from macro_planner.domain.progress import (
    AdjustmentType,
    Confidence,
    DailyLogEntry,
    ProgressAnalysis,
    Trend,
    WeeklyProgressRecord,
)
from macro_planner.domain.targets import Goal
from macro_planner.services.targets import (
    KCAL_PER_G_CARBS,
    KCAL_PER_G_FAT,
    KCAL_PER_G_PROTEIN,
)

KCAL_PER_KG = 7700
MIN_DAILY_CALORIES = 1200
MIN_DAYS_LOGGED = 5

TARGET_WEEKLY_CHANGE_KG = {
    Goal.RAPID_LOSS: -0.875,
    Goal.MODERATE_LOSS: -0.625,
    Goal.MAINTENANCE: 0.0,
    Goal.MODERATE_GAIN: 0.375,
    Goal.RAPID_GAIN: 0.625,
}

# (upper bound on weekly change in kg, trend)
_TREND_BOUNDS = (
    (-0.8, Trend.LOSING_FAST),
    (-0.5, Trend.LOSING_MODERATE),
    (-0.2, Trend.LOSING_SLOW),
    (0.2, Trend.MAINTAINING),
    (0.4, Trend.GAINING_SLOW),
    (0.6, Trend.GAINING_MODERATE),
)

# Calorie split used when the current goals carry no calories to derive ratios.
_FALLBACK_RATIOS = (0.30, 0.40, 0.30)

_logger = logging.getLogger(__name__)


def classify_trend(weight_change_kg: float) -> Trend:
    for upper_bound, trend in _TREND_BOUNDS:
        if weight_change_kg <= upper_bound:
            return trend
    return Trend.GAINING_FAST


def build_weekly_record(  # noqa: PLR0913
    week_number: int,
    entries: Sequence[DailyLogEntry],
    target_calories: float,
    *,
    fallback_weight_kg: float,
    workouts_planned: int = 0,
    week_start: date | None = None,
    min_days_logged: int = MIN_DAYS_LOGGED,
) -> WeeklyProgressRecord | None:
    """Summarize one week of daily log entries.

    Returns None when fewer than ``min_days_logged`` days carry calories.
    """
    ordered = sorted(entries, key=lambda entry: entry.day)
    weights = [entry.weight_kg for entry in ordered if entry.weight_kg is not None]
    start_weight = weights[0] if weights else fallback_weight_kg
    end_weight = weights[-1] if weights else fallback_weight_kg
    logged = [entry for entry in ordered if entry.macros.calories > 0]
    days_logged = len(logged)
    if days_logged < min_days_logged:
        _logger.info("Week %s has only %s logged days", week_number, days_logged)
        return None

    def _average(values: list[float]) -> float:
        return sum(values) / days_logged if days_logged else 0.0

    average_calories = _average([entry.macros.calories for entry in logged])
    adherence = (
        min(100.0, float(round(average_calories / target_calories * 100)))
        if target_calories > 0
        else 0.0
    )
    workouts_done = sum(1 for entry in ordered if entry.trained)
    energy = tuple(entry.energy for entry in ordered if entry.energy is not None)
    hunger = tuple(entry.hunger for entry in ordered if entry.hunger is not None)
    quality = tuple(
        entry.workout_quality
        for entry in ordered
        if entry.trained and entry.workout_quality is not None
    )
    weight_change = end_weight - start_weight
    return WeeklyProgressRecord(
        week_number=week_number,
        week_start=week_start or (ordered[0].day if ordered else None),
        start_weight_kg=start_weight,
        end_weight_kg=end_weight,
        weight_change_kg=weight_change,
        days_logged=days_logged,
        average_calories=average_calories,
        target_calories=target_calories,
        calorie_adherence=adherence,
        average_protein_g=round(_average([e.macros.protein_g for e in logged])),
        average_carbs_g=round(_average([e.macros.carbs_g for e in logged])),
        average_fat_g=round(_average([e.macros.fat_g for e in logged])),
        trend=classify_trend(weight_change),
        workouts_done=workouts_done,
        workouts_planned=workouts_planned,
        workout_adherence=(
            float(round(workouts_done / workouts_planned * 100))
            if workouts_planned > 0
            else 0.0
        ),
        energy_levels=energy or None,
        hunger_levels=hunger or None,
        workout_quality=quality or None,
    )


@dataclass
class ProgressAnalyzer:
    """Decides whether the daily calorie target should change.

    Works on the last ``window`` weekly records. Thresholds are kept as
    fields so that deployments can tune them through settings.
    """

    window: int = 3
    adherence_threshold: float = 70.0
    on_track_deviation_percent: float = 15.0
    maintenance_tolerance_kg: float = 0.2
    stagnation_threshold_kg: float = 0.1
    too_fast_factor: float = 1.5
    min_adjustment_kcal: int = 50
    max_adjustment_kcal: int = 300
    min_daily_calories: int = MIN_DAILY_CALORIES
    debug: bool = False

    def analyze(
        self, history: Sequence[WeeklyProgressRecord], goal: Goal
    ) -> ProgressAnalysis:
        """Analyze recent weeks for ``goal``."""
        if len(history) < 2:
            return ProgressAnalysis(
                needs_adjustment=False,
                adjustment_type=AdjustmentType.NONE,
                adjustment_amount=0,
                confidence=Confidence.LOW,
                reason="At least two weeks of data are needed for analysis.",
                warnings=("Log your weight weekly to enable automatic adjustments.",),
            )

        recent = list(history)[-self.window :]
        average_change = sum(week.weight_change_kg for week in recent) / len(recent)
        average_adherence = sum(week.calorie_adherence for week in recent) / len(
            recent
        )
        target_change = TARGET_WEEKLY_CHANGE_KG[goal]
        deviation = average_change - target_change
        context = {
            "average_weekly_change_kg": average_change,
            "average_adherence": average_adherence,
            "target_weekly_change_kg": target_change,
        }

        if average_adherence < self.adherence_threshold:
            return ProgressAnalysis(
                needs_adjustment=False,
                adjustment_type=AdjustmentType.NONE,
                adjustment_amount=0,
                confidence=Confidence.LOW,
                reason="Adherence is too low for a reliable analysis.",
                warnings=(
                    f"Adherence is below {self.adherence_threshold:.0f}%. "
                    "Follow the plan more closely before adjusting calories.",
                ),
                **context,
            )

        warnings: list[str] = []
        if abs(average_change) < self.stagnation_threshold_kg and (
            goal.is_loss or goal.is_gain
        ):
            warnings.append(
                "Weight is stagnant. This may be water retention or metabolic "
                "adaptation."
            )
        if target_change != 0 and abs(average_change) > abs(
            target_change
        ) * self.too_fast_factor:
            warnings.append(
                "Weight is changing faster than expected. Consider adjusting for "
                "sustainability."
            )

        if self._on_track(deviation, target_change):
            return ProgressAnalysis(
                needs_adjustment=False,
                adjustment_type=AdjustmentType.NONE,
                adjustment_amount=0,
                confidence=Confidence.HIGH,
                reason="You are on track with your plan.",
                warnings=tuple(warnings),
                **context,
            )

        adjustment_type, confidence = self._direction(goal, average_change, warnings)
        if adjustment_type is AdjustmentType.NONE:
            return ProgressAnalysis(
                needs_adjustment=False,
                adjustment_type=AdjustmentType.NONE,
                adjustment_amount=0,
                confidence=Confidence.MEDIUM,
                reason="Progress is within an acceptable range. No change needed.",
                warnings=tuple(warnings),
                **context,
            )

        amount = self.calorie_adjustment(deviation, average_adherence)
        if amount < self.min_adjustment_kcal:
            return ProgressAnalysis(
                needs_adjustment=False,
                adjustment_type=AdjustmentType.NONE,
                adjustment_amount=0,
                confidence=confidence,
                reason="The required change is too small to act on.",
                warnings=tuple(warnings),
                **context,
            )

        analysis = ProgressAnalysis(
            needs_adjustment=True,
            adjustment_type=adjustment_type,
            adjustment_amount=round(amount),
            confidence=confidence,
            reason=_adjustment_reason(average_change, target_change, adjustment_type),
            warnings=tuple(warnings),
            **context,
        )
        if self.debug:
            _logger.info(
                "Progress analysis: goal=%s change=%.3f adherence=%.1f "
                "adjustment=%s %s",
                goal.value,
                average_change,
                average_adherence,
                adjustment_type.value,
                analysis.adjustment_amount,
            )
        return analysis

    def calorie_adjustment(self, deviation_kg: float, adherence: float) -> float:
        """Daily kcal magnitude for a weekly deviation, scaled by adherence."""
        daily = abs(deviation_kg) * KCAL_PER_KG / 7
        return min(float(self.max_adjustment_kcal), daily * adherence / 100)

    def apply_adjustment(
        self, current: MacroProfile, analysis: ProgressAnalysis
    ) -> MacroProfile:
        """Apply an analysis to macro goals, preserving calorie ratios."""
        if not analysis.needs_adjustment:
            return current
        delta = analysis.adjustment_amount
        if analysis.adjustment_type is AdjustmentType.DECREASE:
            delta = -delta
        if current.calories > 0:
            protein_ratio = current.protein_g * KCAL_PER_G_PROTEIN / current.calories
            carbs_ratio = current.carbs_g * KCAL_PER_G_CARBS / current.calories
            fat_ratio = current.fat_g * KCAL_PER_G_FAT / current.calories
        else:
            protein_ratio, carbs_ratio, fat_ratio = _FALLBACK_RATIOS
        calories = max(self.min_daily_calories, round(current.calories + delta))
        return MacroProfile(
            calories=calories,
            protein_g=round(calories * protein_ratio / KCAL_PER_G_PROTEIN),
            fat_g=round(calories * fat_ratio / KCAL_PER_G_FAT),
            carbs_g=round(calories * carbs_ratio / KCAL_PER_G_CARBS),
        )

    def _on_track(self, deviation: float, target_change: float) -> bool:
        if target_change == 0:
            return abs(deviation) <= self.maintenance_tolerance_kg
        deviation_percent = abs(deviation) / abs(target_change) * 100
        return deviation_percent < self.on_track_deviation_percent

    def _direction(
        self, goal: Goal, average_change: float, warnings: list[str]
    ) -> tuple[AdjustmentType, Confidence]:
        target_change = TARGET_WEEKLY_CHANGE_KG[goal]
        if goal.is_loss:
            if average_change > -self.stagnation_threshold_kg:
                return AdjustmentType.DECREASE, Confidence.HIGH
            if average_change < target_change * self.too_fast_factor:
                warnings.append("Losing weight this fast can cost muscle mass.")
                return AdjustmentType.INCREASE, Confidence.MEDIUM
            return AdjustmentType.NONE, Confidence.MEDIUM
        if goal.is_gain:
            if average_change < self.stagnation_threshold_kg:
                return AdjustmentType.INCREASE, Confidence.HIGH
            if average_change > target_change * self.too_fast_factor:
                warnings.append("Gaining weight this fast can raise body fat.")
                return AdjustmentType.DECREASE, Confidence.MEDIUM
            return AdjustmentType.NONE, Confidence.MEDIUM
        if abs(average_change) > self.maintenance_tolerance_kg:
            if average_change > 0:
                return AdjustmentType.DECREASE, Confidence.MEDIUM
            return AdjustmentType.INCREASE, Confidence.MEDIUM
        return AdjustmentType.NONE, Confidence.MEDIUM


def _adjustment_reason(
    actual: float, target: float, adjustment_type: AdjustmentType
) -> str:
    verb = "losing" if actual < 0 else "gaining"
    difference = abs(actual - target)
    if adjustment_type is AdjustmentType.INCREASE:
        return (
            f"You are {verb} {difference:.2f} kg/week less than expected. "
            "Calories will be increased."
        )
    return (
        f"You are {verb} {difference:.2f} kg/week more than expected. "
        "Calories will be reduced."
    )


def analyze_weekly_progress(
    history: Sequence[WeeklyProgressRecord], goal: Goal
) -> ProgressAnalysis:
    return ProgressAnalyzer().analyze(history, goal)


def apply_adjustment(current: MacroProfile, analysis: ProgressAnalysis) -> MacroProfile:
    return ProgressAnalyzer().apply_adjustment(current, analysis)

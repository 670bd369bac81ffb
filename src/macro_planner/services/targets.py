"""Energy expenditure, daily macro goals and per-meal targets."""

from collections.abc import Sequence

from macro_planner.domain.meals import MacroTarget
from macro_planner.domain.nutrition import MacroProfile
from macro_planner.domain.progress import AdaptationLevel, MetabolicAdaptationResult
from macro_planner.domain.targets import (
    ActivityBreakdown,
    BmrMethod,
    DailyTargets,
    Goal,
    Lifestyle,
    MealSlot,
    Occupation,
    Sex,
    UserProfile,
)

KCAL_PER_G_PROTEIN = 4
KCAL_PER_G_CARBS = 4
KCAL_PER_G_FAT = 9

MIN_CARBS_G = 100
MIN_FAT_G = 40

GOAL_CALORIE_MULTIPLIERS = {
    Goal.RAPID_LOSS: 0.80,
    Goal.MODERATE_LOSS: 0.85,
    Goal.MAINTENANCE: 1.0,
    Goal.MODERATE_GAIN: 1.10,
    Goal.RAPID_GAIN: 1.15,
}

_OCCUPATION_NEAT = {
    Occupation.DESK_JOB: 1.2,
    Occupation.STANDING_JOB: 1.35,
    Occupation.WALKING_JOB: 1.5,
    Occupation.PHYSICAL_JOB: 1.65,
}

_LIFESTYLE_NEAT = {
    Lifestyle.SEDENTARY: 1.2,
    Lifestyle.LIGHTLY_ACTIVE: 1.3,
    Lifestyle.MODERATELY_ACTIVE: 1.45,
    Lifestyle.VERY_ACTIVE: 1.6,
    Lifestyle.EXTREMELY_ACTIVE: 1.75,
}

_EXERCISE_BOOST = {3: 0.10, 4: 0.15, 5: 0.20, 6: 0.25}

# (upper bound on daily steps, NEAT factor)
_STEP_NEAT = ((3000, 1.2), (5000, 1.3), (8000, 1.4), (12000, 1.5))

_REVERSE_DIET_KCAL = {
    AdaptationLevel.MILD: 100,
    AdaptationLevel.MODERATE: 200,
    AdaptationLevel.SEVERE: 300,
}


def calculate_bmr(sex: Sex, weight_kg: float, height_cm: float, age: int) -> float:
    """Mifflin-St Jeor basal metabolic rate."""
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return base + 5 if sex is Sex.MALE else base - 161


def calculate_lean_body_mass(weight_kg: float, body_fat_percentage: float) -> float:
    return weight_kg * (1 - body_fat_percentage / 100)


def calculate_katch_mcardle_bmr(lean_body_mass_kg: float) -> float:
    return 370 + 21.6 * lean_body_mass_kg


def resolve_lean_body_mass(profile: UserProfile) -> float | None:
    """Return lean mass when it is known or derivable from body fat."""
    if profile.lean_body_mass_kg:
        return profile.lean_body_mass_kg
    if profile.body_fat_percentage:
        return calculate_lean_body_mass(profile.weight_kg, profile.body_fat_percentage)
    return None


def calculate_bmr_for_profile(profile: UserProfile) -> tuple[float, BmrMethod]:
    """Use Katch-McArdle when lean mass is known, Mifflin-St Jeor otherwise."""
    lean_mass = resolve_lean_body_mass(profile)
    if lean_mass is not None:
        return calculate_katch_mcardle_bmr(lean_mass), BmrMethod.KATCH_MCARDLE
    return (
        calculate_bmr(profile.sex, profile.weight_kg, profile.height_cm, profile.age),
        BmrMethod.MIFFLIN_ST_JEOR,
    )


def activity_factor(training_days_per_week: int) -> float:
    """Bucketed activity multiplier keyed by weekly training days."""
    if training_days_per_week <= 0:
        return 1.2
    if training_days_per_week <= 2:
        return 1.375
    if training_days_per_week <= 5:
        return 1.55
    if training_days_per_week <= 7:
        return 1.725
    return 1.9


def neat_factor(
    daily_steps: int | None = None,
    occupation: Occupation | None = None,
    lifestyle: Lifestyle | None = None,
) -> float:
    """Non-exercise activity factor; steps win over occupation over lifestyle."""
    if daily_steps is not None:
        for upper_bound, factor in _STEP_NEAT:
            if daily_steps < upper_bound:
                return factor
        return 1.6
    if occupation is not None:
        return _OCCUPATION_NEAT[occupation]
    if lifestyle is not None:
        return _LIFESTYLE_NEAT[lifestyle]
    return 1.2


def exercise_boost(training_days_per_week: int) -> float:
    if training_days_per_week <= 0:
        return 0.0
    if training_days_per_week <= 2:
        return 0.05
    return _EXERCISE_BOOST.get(training_days_per_week, 0.30)


def advanced_activity(profile: UserProfile) -> ActivityBreakdown:
    """NEAT multiplied by an exercise-specific boost."""
    neat = neat_factor(profile.daily_steps, profile.occupation, profile.lifestyle)
    exercise = 1 + exercise_boost(profile.training_days_per_week)
    return ActivityBreakdown(
        neat_factor=neat, exercise_factor=exercise, total_factor=neat * exercise
    )


def bucketed_activity(training_days_per_week: int) -> ActivityBreakdown:
    factor = activity_factor(training_days_per_week)
    return ActivityBreakdown(neat_factor=factor, exercise_factor=1.0, total_factor=factor)


def calculate_target_calories(tdee: float, goal: Goal) -> int:
    return round(tdee * GOAL_CALORIE_MULTIPLIERS[goal])


def reverse_diet_adjustment(
    goal: Goal, adaptation: MetabolicAdaptationResult | None
) -> int:
    """Extra daily calories while adapted on a loss goal."""
    if adaptation is None or not adaptation.is_adapted or not goal.is_loss:
        return 0
    return _REVERSE_DIET_KCAL.get(adaptation.level, 0)


def _protein_per_kg(sex: Sex, goal: Goal) -> float:
    if goal.is_loss:
        return 2.2 if sex is Sex.MALE else 2.0
    return 2.0 if sex is Sex.MALE else 1.8


def _protein_per_kg_lean(goal: Goal) -> float:
    if goal.is_loss:
        return 2.4
    if goal.is_gain:
        return 2.0
    return 2.2


def _fat_fraction(sex: Sex, goal: Goal) -> float:
    if goal.is_gain:
        return 0.30 if sex is Sex.FEMALE else 0.28
    if goal.is_loss:
        return 0.30 if sex is Sex.FEMALE else 0.25
    return 0.28 if sex is Sex.FEMALE else 0.25


def calculate_macros(
    target_calories: float,
    weight_kg: float,
    sex: Sex,
    goal: Goal,
    lean_body_mass_kg: float | None = None,
) -> MacroProfile:
    """Split calories into protein first, then fat, then carbohydrate.

    The carbohydrate and fat floors are applied after the split, so the
    macros may add up to slightly more than ``target_calories``.
    """
    if lean_body_mass_kg:
        protein = round(lean_body_mass_kg * _protein_per_kg_lean(goal))
    else:
        protein = round(weight_kg * _protein_per_kg(sex, goal))
    fat_calories = target_calories * _fat_fraction(sex, goal)
    fat = round(fat_calories / KCAL_PER_G_FAT)
    carbs = round(
        (target_calories - protein * KCAL_PER_G_PROTEIN - fat_calories)
        / KCAL_PER_G_CARBS
    )
    return MacroProfile(
        calories=target_calories,
        protein_g=protein,
        fat_g=max(fat, MIN_FAT_G),
        carbs_g=max(carbs, MIN_CARBS_G),
    )


def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    if height_cm <= 0:
        return 0.0
    return weight_kg / (height_cm / 100) ** 2


def estimate_body_fat_percentage(bmi: float, age: int, sex: Sex) -> float:
    """Deurenberg estimate from BMI and age."""
    sex_value = 1 if sex is Sex.MALE else 2
    return 1.20 * bmi + 0.23 * age - 10.8 * sex_value - 5.4


def compute_daily_targets(
    profile: UserProfile,
    *,
    advanced: bool = False,
    adaptation: MetabolicAdaptationResult | None = None,
) -> DailyTargets:
    """Derive BMR, TDEE and daily macro goals for a profile."""
    bmr, method = calculate_bmr_for_profile(profile)
    if advanced:
        activity = advanced_activity(profile)
    else:
        activity = bucketed_activity(profile.training_days_per_week)
    tdee = bmr * activity.total_factor
    adjustment = reverse_diet_adjustment(profile.goal, adaptation)
    target_calories = calculate_target_calories(tdee, profile.goal) + adjustment
    lean_mass = resolve_lean_body_mass(profile)
    macros = calculate_macros(
        target_calories, profile.weight_kg, profile.sex, profile.goal, lean_mass
    )
    bmi = calculate_bmi(profile.weight_kg, profile.height_cm)
    return DailyTargets(
        bmr=round(bmr),
        bmr_method=method,
        tdee=round(tdee),
        activity=activity,
        target_calories=target_calories,
        macros=macros,
        bmi=round(bmi, 1),
        estimated_body_fat_percentage=round(
            estimate_body_fat_percentage(bmi, profile.age, profile.sex), 1
        ),
        lean_body_mass_kg=round(lean_mass, 1) if lean_mass is not None else None,
        metabolic_adjustment=adjustment,
    )


def meal_distribution(profile: UserProfile) -> dict[MealSlot, float]:
    """Fraction of daily calories per slot; inactive slots are absent."""
    if profile.meal_distribution:
        return {
            slot: percentage / 100
            for slot, percentage in profile.meal_distribution.items()
            if percentage > 0
        }
    return _default_distribution(profile.goal, profile.meals_per_day)


def _default_distribution(goal: Goal, meals_per_day: int) -> dict[MealSlot, float]:  # noqa: PLR0911
    breakfast, lunch, snack, dinner = (
        MealSlot.BREAKFAST,
        MealSlot.LUNCH,
        MealSlot.SNACK,
        MealSlot.DINNER,
    )
    if meals_per_day == 2:
        if goal.is_loss:
            return {lunch: 0.60, dinner: 0.40}
        return {lunch: 0.55, dinner: 0.45}
    if meals_per_day == 3:
        if goal.is_loss:
            return {breakfast: 0.30, lunch: 0.45, dinner: 0.25}
        if goal.is_gain:
            return {breakfast: 0.25, lunch: 0.40, dinner: 0.35}
        return {breakfast: 0.30, lunch: 0.40, dinner: 0.30}
    if meals_per_day == 5:
        # The two small snacks share the single snack slot.
        if goal.is_loss:
            return {breakfast: 0.25, lunch: 0.30, snack: 0.20, dinner: 0.25}
        return {breakfast: 0.20, lunch: 0.30, snack: 0.25, dinner: 0.25}
    if goal.is_loss:
        return {breakfast: 0.30, lunch: 0.35, snack: 0.10, dinner: 0.25}
    return {breakfast: 0.25, lunch: 0.35, snack: 0.15, dinner: 0.25}


def distribute_daily_targets(
    daily: MacroProfile, distribution: dict[MealSlot, float]
) -> dict[MealSlot, MacroProfile]:
    """Split the day across slots so that slot totals equal the day exactly."""
    slots = [slot for slot in MealSlot if distribution.get(slot, 0) > 0]
    result: dict[MealSlot, MacroProfile] = {}
    for slot in slots:
        share = distribution[slot]
        result[slot] = MacroProfile(
            calories=round(daily.calories * share),
            protein_g=round(daily.protein_g * share),
            fat_g=round(daily.fat_g * share),
            carbs_g=round(daily.carbs_g * share),
        )
    if not slots:
        return result
    last = slots[-1]
    others = [result[slot] for slot in slots[:-1]]
    result[last] = MacroProfile(
        calories=daily.calories - sum(item.calories for item in others),
        protein_g=daily.protein_g - sum(item.protein_g for item in others),
        fat_g=daily.fat_g - sum(item.fat_g for item in others),
        carbs_g=daily.carbs_g - sum(item.carbs_g for item in others),
    )
    return result


def compute_remaining_meal_target(
    daily: MacroProfile,
    logged: MacroProfile,
    meals_remaining: int,
    weights: Sequence[float] | None = None,
) -> MacroTarget:
    """Target for the next meal given what the day has logged so far.

    The next meal gets an even share of the remainder, or the share given by
    ``weights[0]`` when weights for every remaining meal are supplied. The
    final remaining meal receives the whole remainder and is flagged as the
    last meal.
    """
    if meals_remaining < 1:
        raise ValueError("meals_remaining must be at least 1")
    remaining = MacroProfile(
        calories=max(0.0, daily.calories - logged.calories),
        protein_g=max(0.0, daily.protein_g - logged.protein_g),
        fat_g=max(0.0, daily.fat_g - logged.fat_g),
        carbs_g=max(0.0, daily.carbs_g - logged.carbs_g),
    )
    if meals_remaining == 1:
        return MacroTarget(
            calories=round(remaining.calories),
            protein_g=round(remaining.protein_g),
            fat_g=round(remaining.fat_g),
            carbs_g=round(remaining.carbs_g),
            is_last_meal=True,
        )
    share = _next_meal_share(meals_remaining, weights)
    return MacroTarget(
        calories=round(remaining.calories * share),
        protein_g=round(remaining.protein_g * share),
        fat_g=round(remaining.fat_g * share),
        carbs_g=round(remaining.carbs_g * share),
        is_last_meal=False,
    )


def _next_meal_share(meals_remaining: int, weights: Sequence[float] | None) -> float:
    if weights is None:
        return 1 / meals_remaining
    if len(weights) != meals_remaining:
        raise ValueError("weights must have one entry per remaining meal")
    if any(weight < 0 for weight in weights) or sum(weights) <= 0:
        raise ValueError("weights must be non-negative with a positive sum")
    return weights[0] / sum(weights)


def remaining_target_for_slot(
    profile: UserProfile,
    daily: MacroProfile,
    logged_by_slot: dict[MealSlot, MacroProfile],
    slot: MealSlot,
) -> MacroTarget:
    """Remaining-meal target for ``slot`` weighted by the meal distribution."""
    distribution = meal_distribution(profile)
    if slot not in distribution:
        raise ValueError(f"{slot.value} is not an active meal slot")
    pending = [
        candidate
        for candidate in MealSlot
        if candidate in distribution
        and (candidate == slot or candidate not in logged_by_slot)
    ]
    # The requested slot leads so that its weight is the one applied.
    pending.remove(slot)
    pending.insert(0, slot)
    logged = MacroProfile(
        calories=sum(m.calories for s, m in logged_by_slot.items() if s != slot),
        protein_g=sum(m.protein_g for s, m in logged_by_slot.items() if s != slot),
        fat_g=sum(m.fat_g for s, m in logged_by_slot.items() if s != slot),
        carbs_g=sum(m.carbs_g for s, m in logged_by_slot.items() if s != slot),
    )
    return compute_remaining_meal_target(
        daily,
        logged,
        len(pending),
        weights=[distribution[candidate] for candidate in pending],
    )

"""FastAPI application factory."""

import logging
from dataclasses import asdict
from uuid import UUID

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from macro_planner.api.models import (
    AdaptationRequest,
    AdjustGoalsRequest,
    AnalyzeProgressRequest,
    DailyTargetsRequest,
    DistributionRequest,
    MealPayload,
    MealTargetRequest,
    RankMealsRequest,
    RecordWeekRequest,
    ReviewRequest,
    ScaleMealRequest,
)
from macro_planner.app_logging import configure_logging
from macro_planner.containers import AppContainer
from macro_planner.domain.meals import MealTemplate, RankedMeal, ScaledMeal
from macro_planner.domain.nutrition import ZERO_MACROS
from macro_planner.domain.progress import WeeklyProgressRecord
from macro_planner.domain.targets import Goal, Sex
from macro_planner.services.adaptation import detect_metabolic_adaptation
from macro_planner.services.catalog import IngredientCatalog, template_from_ingredients
from macro_planner.services.progress import MIN_DAYS_LOGGED, build_weekly_record
from macro_planner.services.ranking import rank_meals_by_fit
from macro_planner.services.reviews import ProgressReview
from macro_planner.services.targets import (
    compute_daily_targets,
    compute_remaining_meal_target,
    distribute_daily_targets,
    meal_distribution,
    remaining_target_for_slot,
)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.debug)
    logger = logging.getLogger(__name__)

    app = FastAPI()
    app.state.container = container

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/targets/daily")
    async def daily_targets(
        payload: DailyTargetsRequest, request: Request
    ) -> dict[str, object]:
        """Return BMR, TDEE and daily macro goals for a profile."""
        state_container: AppContainer = request.app.state.container
        advanced = (
            payload.advanced
            if payload.advanced is not None
            else state_container.settings.advanced_targets
        )
        targets = compute_daily_targets(payload.profile.to_domain(), advanced=advanced)
        return asdict(targets)

    @app.post("/targets/meal")
    async def meal_target(payload: MealTargetRequest) -> dict[str, object]:
        """Return the macro target for the next meal of the day."""
        daily = payload.daily.to_domain()
        if payload.slot is not None:
            if payload.profile is None:
                raise ValueError("profile is required when a slot is given")
            target = remaining_target_for_slot(
                payload.profile.to_domain(),
                daily,
                {
                    slot: logged.to_domain()
                    for slot, logged in payload.logged_by_slot.items()
                },
                payload.slot,
            )
        else:
            if payload.meals_remaining is None:
                raise ValueError("meals_remaining or slot is required")
            target = compute_remaining_meal_target(
                daily,
                payload.logged.to_domain() if payload.logged else ZERO_MACROS,
                payload.meals_remaining,
                payload.weights,
            )
        return asdict(target)

    @app.post("/targets/distribution")
    async def distribution(
        payload: DistributionRequest, request: Request
    ) -> dict[str, object]:
        """Return per-slot shares and macro goals for the day."""
        state_container: AppContainer = request.app.state.container
        profile = payload.profile.to_domain()
        shares = meal_distribution(profile)
        if payload.daily is not None:
            daily = payload.daily.to_domain()
        else:
            daily = compute_daily_targets(
                profile, advanced=state_container.settings.advanced_targets
            ).macros
        meals = distribute_daily_targets(daily, shares)
        return {
            "distribution": {slot.value: share for slot, share in shares.items()},
            "meals": {slot.value: asdict(macros) for slot, macros in meals.items()},
        }

    @app.post("/meals/scale")
    async def scale_meal(payload: ScaleMealRequest, request: Request) -> dict[str, object]:
        """Scale a meal template towards a target."""
        state_container: AppContainer = request.app.state.container
        meal = _to_template(payload.meal, state_container.catalog)
        scaled = state_container.meal_scaler.scale(
            meal, payload.target.to_target(), state_container.catalog
        )
        return _scaled_payload(scaled)

    @app.post("/meals/rank")
    async def rank_meals(payload: RankMealsRequest, request: Request) -> dict[str, object]:
        """Scale candidate meals and order them by fit."""
        state_container: AppContainer = request.app.state.container
        meals = [
            _to_template(meal, state_container.catalog) for meal in payload.meals
        ]
        ranked = rank_meals_by_fit(
            meals,
            payload.target.to_target(),
            state_container.catalog,
            state_container.meal_scaler,
            is_last_meal=payload.is_last_meal,
        )
        return {"meals": [_ranked_payload(entry) for entry in ranked]}

    @app.post("/progress/analyze")
    async def analyze_progress(
        payload: AnalyzeProgressRequest, request: Request
    ) -> dict[str, object]:
        """Decide whether the calorie target should change."""
        state_container: AppContainer = request.app.state.container
        history = [record.to_domain() for record in payload.history]
        analysis = state_container.progress_analyzer.analyze(history, payload.goal)
        return asdict(analysis)

    @app.post("/progress/adjust")
    async def adjust_goals(
        payload: AdjustGoalsRequest, request: Request
    ) -> dict[str, object]:
        """Analyze history and return the adjusted macro goals."""
        analyzer = request.app.state.container.progress_analyzer
        history = [record.to_domain() for record in payload.history]
        analysis = analyzer.analyze(history, payload.goal)
        goals = analyzer.apply_adjustment(payload.current.to_domain(), analysis)
        return {"analysis": asdict(analysis), "goals": asdict(goals)}

    @app.post("/progress/adaptation")
    async def adaptation(
        payload: AdaptationRequest, request: Request
    ) -> dict[str, object]:
        """Check the last four weeks for metabolic adaptation."""
        state_container: AppContainer = request.app.state.container
        result = detect_metabolic_adaptation(
            [record.to_domain() for record in payload.history],
            payload.goal,
            payload.sex,
            debug=state_container.settings.debug,
        )
        return asdict(result)

    @app.post("/users/{user_id}/progress/weeks")
    async def record_week(
        user_id: UUID, payload: RecordWeekRequest, request: Request
    ) -> dict[str, object]:
        """Append a weekly record to the user's history."""
        state_container: AppContainer = request.app.state.container
        record = _weekly_record(payload)
        stored = state_container.progress_service.record_week(user_id, record)
        logger.info("Recorded week %s for %s", stored.week_number, user_id)
        return asdict(stored)

    @app.get("/users/{user_id}/progress/review")
    async def review_progress(
        user_id: UUID, goal: Goal, sex: Sex, request: Request
    ) -> dict[str, object]:
        """Analyze stored history without changing goals."""
        state_container: AppContainer = request.app.state.container
        review = state_container.progress_service.review(user_id, goal, sex)
        return _review_payload(review)

    @app.post("/users/{user_id}/progress/apply")
    async def apply_progress(
        user_id: UUID, payload: ReviewRequest, request: Request
    ) -> dict[str, object]:
        """Analyze stored history and persist adjusted goals when due."""
        state_container: AppContainer = request.app.state.container
        review = state_container.progress_service.apply_review(
            user_id, payload.goal, payload.sex
        )
        return _review_payload(review)

    return app


def _to_template(payload: MealPayload, catalog: IngredientCatalog) -> MealTemplate:
    references = [item.to_domain() for item in payload.ingredients]
    if references:
        return template_from_ingredients(
            payload.id,
            payload.name,
            references,
            catalog,
            is_custom=payload.is_custom,
            is_global=payload.is_global,
        )
    if payload.macros is None:
        raise ValueError(f"meal {payload.id} has neither ingredients nor macros")
    return MealTemplate(
        id=payload.id,
        name=payload.name,
        macros=payload.macros.to_domain(),
        is_custom=payload.is_custom,
        is_global=payload.is_global,
    )


def _weekly_record(payload: RecordWeekRequest) -> WeeklyProgressRecord:
    if payload.record is not None:
        return payload.record.to_domain()
    if (
        payload.week_number is None
        or payload.target_calories is None
        or payload.fallback_weight_kg is None
    ):
        raise ValueError(
            "week_number, target_calories and fallback_weight_kg are required "
            "when building a week from daily entries"
        )
    record = build_weekly_record(
        payload.week_number,
        [entry.to_domain() for entry in payload.entries],
        payload.target_calories,
        fallback_weight_kg=payload.fallback_weight_kg,
        workouts_planned=payload.workouts_planned,
    )
    if record is None:
        raise ValueError(
            f"week {payload.week_number} needs at least {MIN_DAYS_LOGGED} logged days"
        )
    return record


def _scaled_payload(scaled: ScaledMeal) -> dict[str, object]:
    return {**asdict(scaled), "is_degraded": scaled.is_degraded}


def _ranked_payload(entry: RankedMeal) -> dict[str, object]:
    return {
        "meal": asdict(entry.meal),
        "scaled": _scaled_payload(entry.scaled),
        "fit_score": entry.fit_score,
        "fit_percent": entry.fit_percent,
        "band": entry.band.value,
    }


def _review_payload(review: ProgressReview) -> dict[str, object]:
    return {
        "analysis": asdict(review.analysis),
        "adaptation": asdict(review.adaptation),
        "current_goals": asdict(review.current_goals) if review.current_goals else None,
        "proposed_goals": (
            asdict(review.proposed_goals) if review.proposed_goals else None
        ),
    }

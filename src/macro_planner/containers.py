"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from macro_planner.adapters.supabase_ingredient_catalog import (
    SupabaseIngredientCatalog,
)
from macro_planner.adapters.supabase_progress_repository import (
    SupabaseProgressRepository,
)
from macro_planner.config import Settings
from macro_planner.services.catalog import CachingIngredientCatalog, IngredientCatalog
from macro_planner.services.progress import ProgressAnalyzer
from macro_planner.services.reviews import ProgressService
from macro_planner.services.scaling import MealScaler


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    catalog: IngredientCatalog
    meal_scaler: MealScaler
    progress_analyzer: ProgressAnalyzer
    progress_service: ProgressService


def build_meal_scaler(settings: Settings) -> MealScaler:
    return MealScaler(
        tolerance=settings.scaling_tolerance,
        max_iterations=settings.scaling_max_iterations,
        last_meal_max_iterations=settings.scaling_last_meal_max_iterations,
        damping=settings.scaling_damping,
        exact_last_meal=settings.exact_last_meal,
        debug=settings.debug,
    )


def build_progress_analyzer(settings: Settings) -> ProgressAnalyzer:
    return ProgressAnalyzer(
        adherence_threshold=settings.adherence_threshold,
        debug=settings.debug,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    catalog = CachingIngredientCatalog(
        source=SupabaseIngredientCatalog(supabase_client),
        ttl_seconds=resolved_settings.catalog_ttl_seconds,
    )
    progress_analyzer = build_progress_analyzer(resolved_settings)
    progress_service = ProgressService(
        repository=SupabaseProgressRepository(supabase_client),
        analyzer=progress_analyzer,
    )
    return AppContainer(
        settings=resolved_settings,
        catalog=catalog,
        meal_scaler=build_meal_scaler(resolved_settings),
        progress_analyzer=progress_analyzer,
        progress_service=progress_service,
    )

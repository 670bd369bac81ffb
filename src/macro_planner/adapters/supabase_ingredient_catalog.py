"""Supabase-backed ingredient catalog."""

import logging
from dataclasses import dataclass

from supabase import Client

from macro_planner.domain.nutrition import Ingredient, IngredientCategory, MacroProfile
from macro_planner.services.catalog import IngredientCatalog

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseIngredientCatalog(IngredientCatalog):
    """Read-only lookups against the ``ingredients`` table."""

    client: Client

    def get_ingredient(self, ingredient_id: str) -> Ingredient | None:
        """Return an ingredient by id, if present."""
        response = (
            self.client.table("ingredients")
            .select("*")
            .eq("id", ingredient_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_ingredient(response.data[0])


def _parse_ingredient(row: dict[str, object]) -> Ingredient:
    category_raw = str(row.get("category") or IngredientCategory.CUSTOM.value)
    try:
        category = IngredientCategory(category_raw)
    except ValueError:
        _logger.warning(
            "Unknown ingredient category %s for %s", category_raw, row.get("id")
        )
        category = IngredientCategory.CUSTOM
    return Ingredient(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        category=category,
        per_100=MacroProfile(
            calories=float(row.get("calories_per_100g") or 0.0),
            protein_g=float(row.get("protein_per_100g") or 0.0),
            fat_g=float(row.get("fat_per_100g") or 0.0),
            carbs_g=float(row.get("carbs_per_100g") or 0.0),
        ),
    )

"""Supabase implementation for weekly progress history and macro goals."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from macro_planner.domain.nutrition import MacroProfile
from macro_planner.domain.progress import (
    EnergyLevel,
    HungerLevel,
    Trend,
    WeeklyProgressRecord,
    WorkoutQuality,
)
from macro_planner.services.reviews import ProgressRepository


@dataclass
class SupabaseProgressRepository(ProgressRepository):
    """Supabase-backed repository for ``weekly_progress`` and ``macro_goals``."""

    client: Client

    def list_weekly_records(
        self, user_id: UUID, limit: int
    ) -> list[WeeklyProgressRecord]:
        """Return the latest weekly records, oldest first."""
        response = (
            self.client.table("weekly_progress")
            .select("*")
            .eq("user_id", str(user_id))
            .order("week_number", desc=True)
            .limit(limit)
            .execute()
        )
        records = [_parse_record(row) for row in response.data or []]
        records.reverse()
        return records

    def append_weekly_record(
        self, user_id: UUID, record: WeeklyProgressRecord
    ) -> WeeklyProgressRecord:
        """Insert a weekly record and return the stored version."""
        response = (
            self.client.table("weekly_progress")
            .insert({"user_id": str(user_id), **_record_payload(record)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to store weekly progress")
        return _parse_record(response.data[0])

    def get_macro_goals(self, user_id: UUID) -> MacroProfile | None:
        """Return the user's macro goals, if set."""
        response = (
            self.client.table("macro_goals")
            .select("calories, protein_g, carbs_g, fat_g")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return MacroProfile(
            calories=float(row.get("calories") or 0.0),
            protein_g=float(row.get("protein_g") or 0.0),
            fat_g=float(row.get("fat_g") or 0.0),
            carbs_g=float(row.get("carbs_g") or 0.0),
        )

    def set_macro_goals(self, user_id: UUID, goals: MacroProfile) -> MacroProfile:
        """Upsert the user's macro goals."""
        response = (
            self.client.table("macro_goals")
            .upsert(
                {
                    "user_id": str(user_id),
                    "calories": goals.calories,
                    "protein_g": goals.protein_g,
                    "carbs_g": goals.carbs_g,
                    "fat_g": goals.fat_g,
                },
                on_conflict="user_id",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update macro goals")
        return goals


def _record_payload(record: WeeklyProgressRecord) -> dict[str, object]:
    return {
        "week_number": record.week_number,
        "week_start": record.week_start.isoformat() if record.week_start else None,
        "start_weight_kg": record.start_weight_kg,
        "end_weight_kg": record.end_weight_kg,
        "weight_change_kg": record.weight_change_kg,
        "days_logged": record.days_logged,
        "average_calories": record.average_calories,
        "target_calories": record.target_calories,
        "calorie_adherence": record.calorie_adherence,
        "average_protein_g": record.average_protein_g,
        "average_carbs_g": record.average_carbs_g,
        "average_fat_g": record.average_fat_g,
        "trend": record.trend.value,
        "workouts_done": record.workouts_done,
        "workouts_planned": record.workouts_planned,
        "workout_adherence": record.workout_adherence,
        "energy_levels": _values(record.energy_levels),
        "hunger_levels": _values(record.hunger_levels),
        "workout_quality": _values(record.workout_quality),
    }


def _values(levels: tuple[EnergyLevel | HungerLevel | WorkoutQuality, ...] | None) -> (
    list[str] | None
):
    if levels is None:
        return None
    return [level.value for level in levels]


def _parse_record(row: dict[str, object]) -> WeeklyProgressRecord:
    week_start_raw = row.get("week_start")
    energy = row.get("energy_levels")
    hunger = row.get("hunger_levels")
    quality = row.get("workout_quality")
    return WeeklyProgressRecord(
        week_number=int(row["week_number"]),
        week_start=(
            date.fromisoformat(week_start_raw)
            if isinstance(week_start_raw, str) and week_start_raw
            else None
        ),
        start_weight_kg=float(row.get("start_weight_kg", 0.0)),
        end_weight_kg=float(row.get("end_weight_kg", 0.0)),
        weight_change_kg=float(row.get("weight_change_kg", 0.0)),
        days_logged=int(row.get("days_logged", 0)),
        average_calories=float(row.get("average_calories", 0.0)),
        target_calories=float(row.get("target_calories", 0.0)),
        calorie_adherence=float(row.get("calorie_adherence", 0.0)),
        average_protein_g=float(row.get("average_protein_g", 0.0)),
        average_carbs_g=float(row.get("average_carbs_g", 0.0)),
        average_fat_g=float(row.get("average_fat_g", 0.0)),
        trend=Trend(str(row.get("trend") or Trend.MAINTAINING.value)),
        workouts_done=int(row.get("workouts_done") or 0),
        workouts_planned=int(row.get("workouts_planned") or 0),
        workout_adherence=float(row.get("workout_adherence") or 0.0),
        energy_levels=(
            tuple(EnergyLevel(value) for value in energy)
            if isinstance(energy, list)
            else None
        ),
        hunger_levels=(
            tuple(HungerLevel(value) for value in hunger)
            if isinstance(hunger, list)
            else None
        ),
        workout_quality=(
            tuple(WorkoutQuality(value) for value in quality)
            if isinstance(quality, list)
            else None
        ),
    )

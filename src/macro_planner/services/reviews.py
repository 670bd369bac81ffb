"""Progress review service backed by a persisted weekly history."""

import logging
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from macro_planner.domain.nutrition import MacroProfile
from macro_planner.domain.progress import (
    MetabolicAdaptationResult,
    ProgressAnalysis,
    WeeklyProgressRecord,
)
from macro_planner.domain.targets import Goal, Sex
from macro_planner.services.adaptation import REQUIRED_WEEKS, detect_metabolic_adaptation
from macro_planner.services.progress import ProgressAnalyzer

_logger = logging.getLogger(__name__)


class ProgressRepository(Protocol):
    """Persistence interface for weekly history and macro goals."""

    def list_weekly_records(
        self, user_id: UUID, limit: int
    ) -> list[WeeklyProgressRecord]:
        """Return the most recent records, oldest first."""

    def append_weekly_record(
        self, user_id: UUID, record: WeeklyProgressRecord
    ) -> WeeklyProgressRecord:
        """Persist a new weekly record."""

    def get_macro_goals(self, user_id: UUID) -> MacroProfile | None:
        """Return the user's current daily macro goals."""

    def set_macro_goals(self, user_id: UUID, goals: MacroProfile) -> MacroProfile:
        """Replace the user's daily macro goals."""


@dataclass(frozen=True)
class ProgressReview:
    """Analysis of a user's recent weeks with the goals it would produce."""

    analysis: ProgressAnalysis
    adaptation: MetabolicAdaptationResult
    current_goals: MacroProfile | None
    proposed_goals: MacroProfile | None


@dataclass
class ProgressService:
    """Moves weekly history between storage and the pure analyzers."""

    repository: ProgressRepository
    analyzer: ProgressAnalyzer = field(default_factory=ProgressAnalyzer)

    def record_week(
        self, user_id: UUID, record: WeeklyProgressRecord
    ) -> WeeklyProgressRecord:
        """Append a week; week numbers must strictly increase."""
        latest = self.repository.list_weekly_records(user_id, 1)
        if latest and record.week_number <= latest[-1].week_number:
            raise ValueError(
                f"week {record.week_number} does not follow week "
                f"{latest[-1].week_number}"
            )
        return self.repository.append_weekly_record(user_id, record)

    def history(self, user_id: UUID) -> list[WeeklyProgressRecord]:
        limit = max(self.analyzer.window, REQUIRED_WEEKS)
        return self.repository.list_weekly_records(user_id, limit)

    def review(self, user_id: UUID, goal: Goal, sex: Sex) -> ProgressReview:
        """Analyze recent weeks without changing anything."""
        history = self.history(user_id)
        analysis = self.analyzer.analyze(history, goal)
        adaptation = detect_metabolic_adaptation(
            history, goal, sex, debug=self.analyzer.debug
        )
        current = self.repository.get_macro_goals(user_id)
        proposed = (
            self.analyzer.apply_adjustment(current, analysis)
            if current is not None
            else None
        )
        return ProgressReview(
            analysis=analysis,
            adaptation=adaptation,
            current_goals=current,
            proposed_goals=proposed,
        )

    def apply_review(self, user_id: UUID, goal: Goal, sex: Sex) -> ProgressReview:
        """Review progress and persist the adjusted goals when a change is due."""
        result = self.review(user_id, goal, sex)
        if (
            result.analysis.needs_adjustment
            and result.proposed_goals is not None
            and result.proposed_goals != result.current_goals
        ):
            self.repository.set_macro_goals(user_id, result.proposed_goals)
            _logger.info(
                "Adjusted macro goals for %s: %s -> %s kcal",
                user_id,
                result.current_goals.calories if result.current_goals else None,
                result.proposed_goals.calories,
            )
        return result

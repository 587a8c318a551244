from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable

from gradequest.achievements.aggregator import Aggregator, Statistics
from gradequest.achievements.catalog import AchievementDefinition
from gradequest.achievements.errors import PersistenceConflictError
from gradequest.achievements.evaluator import EvaluationResult
from gradequest.achievements.interface import UnlockBridge
from gradequest.achievements.selector import WeekSelector, WeeklySelection
from gradequest.achievements.weeks import week_bounds
from gradequest.utils.tracing import trace_span

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeeklyState:
    selection: WeeklySelection
    results: dict[str, EvaluationResult]
    new_unlocks: list[AchievementDefinition] = field(default_factory=list)

    @property
    def points_earned(self) -> int:
        return sum(r.achievement.points for r in self.results.values() if r.unlocked)


@dataclass(frozen=True)
class Dashboard:
    statistics: Statistics
    new_unlocks: list[AchievementDefinition] = field(default_factory=list)


class WeeklyAchievementEngine:
    '''Glue between the selector, the evaluator and the unlock bridge.

    Snapshot fetch errors propagate to the caller. Unlocks already on
    record are treated as success.
    '''

    def __init__(
        self,
        selector: WeekSelector,
        aggregator: Aggregator,
        bridge: UnlockBridge,
    ) -> None:
        self.selector = selector
        self.aggregator = aggregator
        self.bridge = bridge

    def weekly_state(
        self, user_id: str, reference: date | datetime | None = None
    ) -> WeeklyState:
        with trace_span('achievements.weekly_state', {'user_id': user_id}):
            selection = self.selector.resolve_week_selection(user_id, reference)
            snapshot = self.aggregator.fetch_snapshot(
                user_id, selection.week_start, selection.week_end
            )
            results = {
                tier: self.aggregator.rules.evaluate(achievement, snapshot)
                for tier, achievement in selection.by_tier().items()
            }
            new_unlocks = self.record_unlocks(user_id, results.values())
            return WeeklyState(selection=selection, results=results, new_unlocks=new_unlocks)

    def dashboard(
        self, user_id: str, reference: date | datetime | None = None
    ) -> Dashboard:
        '''Statistics over the whole catalog for the week of `reference`.'''
        start, end = week_bounds(reference or self.selector.clock())
        with trace_span('achievements.dashboard', {'user_id': user_id}):
            stats = self.aggregator.summarize(user_id, start, end)
            new_unlocks = self.record_unlocks(user_id, stats.results)
            return Dashboard(statistics=stats, new_unlocks=new_unlocks)

    def unlocked_this_week(
        self, user_id: str, reference: date | datetime | None = None
    ) -> int:
        start, end = week_bounds(reference or self.selector.clock())
        return len(self.bridge.unlocks_between(user_id, start, end))

    def record_unlocks(
        self, user_id: str, results: Iterable[EvaluationResult]
    ) -> list[AchievementDefinition]:
        '''Persist unlocked results; return the ones recorded for the first time.'''
        created: list[AchievementDefinition] = []
        for result in results:
            if not result.unlocked:
                continue
            title = result.achievement.title
            with trace_span('achievements.record_unlock', {'title': title}):
                try:
                    record = self.bridge.record_unlock(user_id, result.achievement)
                except PersistenceConflictError:
                    logger.debug(f'{title!r} already recorded for user {user_id}')
                    continue
            if record.created:
                logger.info(f'User {user_id} unlocked {title!r}')
                created.append(result.achievement)
        return created

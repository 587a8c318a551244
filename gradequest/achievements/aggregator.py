from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Sequence

from gradequest.achievements.catalog import CATEGORIES, AchievementDefinition, get_catalog
from gradequest.achievements.evaluator import EvaluationResult, RuleEvaluator, evaluator
from gradequest.achievements.interface import SnapshotProvider
from gradequest.achievements.snapshot import WeeklySnapshot
from gradequest.achievements.weeks import previous_week
from gradequest.utils.constants import NEAR_COMPLETION_THRESHOLD, RECENT_UNLOCKS_LIMIT, TIERS
from gradequest.utils.tracing import trace_span

logger = logging.getLogger(__name__)


def _tally() -> dict[str, int]:
    return {'total': 0, 'unlocked': 0, 'in_progress': 0}


@dataclass
class Statistics:
    total: int = 0
    unlocked: int = 0
    in_progress: int = 0
    by_category: dict[str, dict[str, int]] = field(
        default_factory=lambda: {c: _tally() for c in CATEGORIES}
    )
    by_difficulty: dict[str, dict[str, int]] = field(
        default_factory=lambda: {t: _tally() for t in TIERS}
    )
    near_completion: list[EvaluationResult] = field(default_factory=list)
    recent_unlocks: list[EvaluationResult] = field(default_factory=list)
    results: list[EvaluationResult] = field(default_factory=list)

    @property
    def locked(self) -> int:
        return self.total - self.unlocked - self.in_progress

    @property
    def completion_percent(self) -> float:
        return round(self.unlocked / self.total * 100, 2) if self.total else 0.0


def near_completion(
    results: Iterable[EvaluationResult], threshold: float = NEAR_COMPLETION_THRESHOLD
) -> list[EvaluationResult]:
    '''Locked results whose progress is at least `threshold`, closest first.'''
    close = [r for r in results if not r.unlocked and r.progress >= threshold]
    return sorted(close, key=lambda r: r.progress, reverse=True)


def filter_results(
    results: Iterable[EvaluationResult],
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    unlocked: Optional[bool] = None,
    min_progress: Optional[float] = None,
) -> list[EvaluationResult]:
    return [
        r
        for r in results
        if (category is None or r.achievement.category == category)
        and (difficulty is None or r.achievement.difficulty == difficulty)
        and (unlocked is None or r.unlocked == unlocked)
        and (min_progress is None or r.progress >= min_progress)
    ]


def summarize_results(
    results: Sequence[EvaluationResult],
    near_threshold: float = NEAR_COMPLETION_THRESHOLD,
    recent_limit: int = RECENT_UNLOCKS_LIMIT,
) -> Statistics:
    stats = Statistics(results=list(results))
    for r in results:
        a = r.achievement
        buckets = [
            stats.by_category.setdefault(a.category, _tally()),
            stats.by_difficulty.setdefault(a.difficulty, _tally()),
        ]
        stats.total += 1
        for b in buckets:
            b['total'] += 1
        if r.unlocked:
            stats.unlocked += 1
            for b in buckets:
                b['unlocked'] += 1
        elif r.progress > 0:
            stats.in_progress += 1
            for b in buckets:
                b['in_progress'] += 1

    stats.near_completion = near_completion(results, near_threshold)
    # Catalog order
    stats.recent_unlocks = [r for r in results if r.unlocked][: max(recent_limit, 0)]
    return stats


class Aggregator:
    '''Evaluate the whole catalog for a user's week and summarize it.'''

    def __init__(
        self,
        provider: SnapshotProvider,
        rules: RuleEvaluator = evaluator,
        catalog: Optional[Iterable[AchievementDefinition]] = None,
        near_threshold: float = NEAR_COMPLETION_THRESHOLD,
        recent_limit: int = RECENT_UNLOCKS_LIMIT,
    ) -> None:
        self.provider = provider
        self.rules = rules
        self.catalog = tuple(catalog) if catalog is not None else get_catalog()
        self.near_threshold = near_threshold
        self.recent_limit = recent_limit

    def fetch_snapshot(
        self, user_id: str, week_start: datetime, week_end: datetime
    ) -> WeeklySnapshot:
        '''The week's snapshot with the preceding week attached.

        DataFetchError from either fetch propagates; nothing is evaluated
        on partial data.
        '''
        with trace_span('weekly.fetch_snapshot', {'user_id': user_id}):
            current = self.provider.get_weekly_snapshot(user_id, week_start, week_end)
            prev_start, prev_end = previous_week(week_start)
            previous = self.provider.get_weekly_snapshot(user_id, prev_start, prev_end)
            return current.with_previous_week(previous)

    def evaluate(
        self,
        snapshot: WeeklySnapshot,
        achievements: Optional[Iterable[AchievementDefinition]] = None,
    ) -> list[EvaluationResult]:
        targets = self.catalog if achievements is None else tuple(achievements)
        return self.rules.evaluate_all(targets, snapshot)

    def summarize(
        self, user_id: str, week_start: datetime, week_end: datetime
    ) -> Statistics:
        with trace_span('weekly.summarize', {'user_id': user_id}):
            snapshot = self.fetch_snapshot(user_id, week_start, week_end)
            stats = summarize_results(
                self.evaluate(snapshot), self.near_threshold, self.recent_limit
            )
            logger.debug(
                f'User {user_id}: {stats.unlocked}/{stats.total} unlocked, '
                f'{stats.in_progress} in progress'
            )
            return stats

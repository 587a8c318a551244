from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional

from gradequest.achievements.catalog import (
    AchievementDefinition,
    by_title,
    get_catalog,
    validate_catalog,
)
from gradequest.achievements.errors import ConfigurationError
from gradequest.achievements.interface import (
    SelectionRecord,
    SelectionSession,
    SelectionStore,
)
from gradequest.achievements.weeks import week_bounds
from gradequest.utils.constants import CATEGORY_WEIGHTS, LEDGER_RESET_POLICIES, TIERS
from gradequest.utils.tracing import trace_span

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeeklySelection:
    user_id: str
    week_start: datetime
    week_end: datetime
    selection_timestamp: datetime
    easy: AchievementDefinition
    medium: AchievementDefinition
    hard: AchievementDefinition

    @property
    def achievements(self) -> tuple[AchievementDefinition, ...]:
        return self.easy, self.medium, self.hard

    def by_tier(self) -> dict[str, AchievementDefinition]:
        return {'easy': self.easy, 'medium': self.medium, 'hard': self.hard}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WeekSelector:
    '''Pick and persist one easy, one medium and one hard achievement per user week.

    Titles are drawn without repetition until a tier runs dry; the ledger
    is then cleared (entirely with the "all" policy, or only for the
    exhausted tiers with "tier") and the draw starts over.
    '''

    def __init__(
        self,
        store: SelectionStore,
        catalog: Optional[Iterable[AchievementDefinition]] = None,
        rng: Optional[random.Random] = None,
        reset_policy: str = 'all',
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if reset_policy not in LEDGER_RESET_POLICIES:
            raise ConfigurationError(f'Unknown ledger reset policy: {reset_policy!r}')
        self.store = store
        self.catalog = validate_catalog(catalog) if catalog is not None else get_catalog()
        self.rng = rng or random.Random()
        self.reset_policy = reset_policy
        self.clock = clock
        self._titles = by_title(self.catalog)

    def resolve_week_selection(
        self, user_id: str, reference_date: date | datetime | None = None
    ) -> WeeklySelection:
        '''Return this week's selection for the user, creating it if needed.

        Repeated calls within the same week return the identical selection.
        '''
        start, end = week_bounds(reference_date or self.clock())
        with trace_span(
            'weekly.resolve_selection',
            {'user_id': user_id, 'week_start': start.date().isoformat()},
        ):
            with self.store.session(user_id, start) as session:
                existing = session.get_selection()
                if existing is not None:
                    return self._hydrate(existing)
                return self._create(session, user_id, start, end)

    def force_refresh(
        self, user_id: str, reference_date: date | datetime | None = None
    ) -> WeeklySelection:
        '''Discard the week's selection and draw a new one.

        Titles of the discarded selection stay in the ledger.
        '''
        start, end = week_bounds(reference_date or self.clock())
        with trace_span('weekly.force_refresh', {'user_id': user_id}):
            with self.store.session(user_id, start) as session:
                session.delete_selection()
                return self._create(session, user_id, start, end)

    def get_selection(
        self, user_id: str, reference_date: date | datetime | None = None
    ) -> Optional[WeeklySelection]:
        start, _ = week_bounds(reference_date or self.clock())
        record = self.store.get_selection(user_id, start)
        return self._hydrate(record) if record else None

    def available_counts(self, user_id: str) -> dict[str, int]:
        '''Unused titles per tier.'''
        used = set(self.store.get_used_titles(user_id))
        return {tier: len(pool) for tier, pool in self._pools(used).items()}

    def can_create_next_week_selection(self, user_id: str) -> bool:
        return all(count > 0 for count in self.available_counts(user_id).values())

    def usage_stats(self, user_id: str) -> dict[str, object]:
        used = {t for t in self.store.get_used_titles(user_id) if t in self._titles}
        total = len(self.catalog)
        return {
            'total_used': len(used),
            'total_available': total,
            'usage_percentage': round(len(used) / total * 100, 2) if total else 0.0,
            'needs_reset': not self.can_create_next_week_selection(user_id),
        }

    def history(self, user_id: str, limit: int = 10) -> list[WeeklySelection]:
        return [self._hydrate(r) for r in self.store.history(user_id, limit)]

    def _pools(self, used: set[str]) -> dict[str, list[AchievementDefinition]]:
        return {
            tier: [a for a in self.catalog if a.difficulty == tier and a.title not in used]
            for tier in TIERS
        }

    def _create(
        self,
        session: SelectionSession,
        user_id: str,
        start: datetime,
        end: datetime,
    ) -> WeeklySelection:
        used = set(session.get_used_titles())
        pools = self._pools(used)
        exhausted = [tier for tier, pool in pools.items() if not pool]
        if exhausted:
            if self.reset_policy == 'all':
                logger.info(
                    f'Tier(s) {exhausted} exhausted for user {user_id}; clearing the whole ledger'
                )
                session.clear_used_titles()
                used = set()
            else:
                stale = {a.title for a in self.catalog if a.difficulty in exhausted}
                logger.info(f'Tier(s) {exhausted} exhausted for user {user_id}; resetting them')
                session.clear_used_titles(stale)
                used -= stale
            pools = self._pools(used)

        picks = {tier: self._weighted_choice(pools[tier]) for tier in TIERS}
        record = SelectionRecord(
            user_id=user_id,
            week_start=start,
            week_end=end,
            selection_timestamp=self.clock(),
            easy_title=picks['easy'].title,
            medium_title=picks['medium'].title,
            hard_title=picks['hard'].title,
        )
        stored = session.insert_selection(record)
        if stored != record:
            # Another writer got there first; theirs is the week's selection
            return self._hydrate(stored)
        session.add_used_titles(record.titles)
        logger.info(f'Selected weekly achievements for user {user_id}: {record.titles}')
        return self._hydrate(record)

    def _weighted_choice(self, pool: list[AchievementDefinition]) -> AchievementDefinition:
        weighted = [
            a
            for a in pool
            for _ in range(math.ceil(CATEGORY_WEIGHTS.get(a.category, 1.0)))
        ]
        return self.rng.choice(weighted)

    def _hydrate(self, record: SelectionRecord) -> WeeklySelection:
        picks = {}
        for tier, title in zip(TIERS, record.titles):
            achievement = self._titles.get(title)
            if achievement is None:
                raise ConfigurationError(
                    f'Stored selection for user {record.user_id} references unknown '
                    f'achievement {title!r}'
                )
            if achievement.difficulty != tier:
                raise ConfigurationError(
                    f'Stored {tier} selection {title!r} is a {achievement.difficulty} achievement'
                )
            picks[tier] = achievement
        return WeeklySelection(
            user_id=record.user_id,
            week_start=record.week_start,
            week_end=record.week_end,
            selection_timestamp=record.selection_timestamp,
            **picks,
        )

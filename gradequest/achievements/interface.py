from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable, Optional, Protocol, runtime_checkable

from gradequest.achievements.snapshot import WeeklySnapshot

if TYPE_CHECKING:
    from gradequest.achievements.catalog import AchievementDefinition

# (unlocked, progress 0..100, diagnostics)
RuleOutcome = tuple[bool, float, dict[str, Any]]


@runtime_checkable
class AchievementRule(Protocol):
    '''A hand-written predicate/progress pair for one catalog title.'''

    title: str

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        '''
        Return (unlocked, progress, diagnostics). Progress must approach 100
        monotonically as the snapshot gets closer to the goal, even while
        the rule is still locked.
        '''
        ...


@runtime_checkable
class RuleDescriptor(Protocol):
    '''A structured, catalog-level rule of one generic archetype.'''

    kind: str

    def evaluate(self, snapshot: WeeklySnapshot) -> RuleOutcome:
        ...


class SnapshotProvider(Protocol):
    def get_weekly_snapshot(
        self, user_id: str, week_start: datetime, week_end: datetime
    ) -> WeeklySnapshot:
        '''Activities due within [week_start, week_end] and all of the
        user's courses. Raises DataFetchError on failure.'''
        ...


@dataclass(frozen=True)
class UnlockRecord:
    title: str
    created: bool


class UnlockBridge(Protocol):
    def record_unlock(
        self, user_id: str, achievement: 'AchievementDefinition'
    ) -> UnlockRecord:
        '''Idempotently persist an unlock. May raise PersistenceConflictError
        for a duplicate, which callers treat as created=False.'''
        ...

    def unlocks_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[str]:
        '''Titles whose unlock was recorded within [start, end].'''
        ...


@dataclass(frozen=True)
class SelectionRecord:
    '''A persisted weekly selection, stored by title.'''

    user_id: str
    week_start: datetime
    week_end: datetime
    selection_timestamp: datetime
    easy_title: str
    medium_title: str
    hard_title: str

    @property
    def titles(self) -> tuple[str, str, str]:
        return self.easy_title, self.medium_title, self.hard_title


class SelectionSession(Protocol):
    '''Operations available while the per-user selection lock is held.'''

    def get_selection(self) -> Optional[SelectionRecord]:
        ...

    def insert_selection(self, record: SelectionRecord) -> SelectionRecord:
        '''Create the selection if absent and return whichever one is stored.'''
        ...

    def delete_selection(self) -> None:
        ...

    def get_used_titles(self) -> list[str]:
        ...

    def add_used_titles(self, titles: Iterable[str]) -> None:
        ...

    def clear_used_titles(self, titles: Optional[Iterable[str]] = None) -> None:
        '''Clear the whole ledger, or only `titles` when given.'''
        ...


class SelectionStore(Protocol):
    def session(
        self, user_id: str, week_start: datetime
    ) -> AbstractContextManager[SelectionSession]:
        '''Serialize selection creation for the user and yield a session.'''
        ...

    def get_selection(
        self, user_id: str, week_start: datetime
    ) -> Optional[SelectionRecord]:
        ...

    def get_used_titles(self, user_id: str) -> list[str]:
        ...

    def history(self, user_id: str, limit: int = 10) -> list[SelectionRecord]:
        ...

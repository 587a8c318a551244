from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Dict, Iterable, Iterator, Optional

from gradequest.achievements.interface import SelectionRecord, UnlockRecord
from gradequest.achievements.weeks import week_key

if TYPE_CHECKING:
    from gradequest.achievements.catalog import AchievementDefinition

LOCK_STRIPES = 64


class InMemorySelectionSession:
    def __init__(self, store: 'InMemorySelectionStore', user_id: str, week_start: datetime):
        self._store = store
        self.user_id = user_id
        self.key = (user_id, week_key(week_start))

    def get_selection(self) -> Optional[SelectionRecord]:
        return self._store._selections.get(self.key)

    def insert_selection(self, record: SelectionRecord) -> SelectionRecord:
        return self._store._selections.setdefault(self.key, record)

    def delete_selection(self) -> None:
        self._store._selections.pop(self.key, None)

    def get_used_titles(self) -> list[str]:
        return list(self._store._used.get(self.user_id, []))

    def add_used_titles(self, titles: Iterable[str]) -> None:
        used = self._store._used.setdefault(self.user_id, [])
        for title in titles:
            if title not in used:
                used.append(title)

    def clear_used_titles(self, titles: Optional[Iterable[str]] = None) -> None:
        if titles is None:
            self._store._used.pop(self.user_id, None)
            return
        drop = set(titles)
        used = self._store._used.get(self.user_id, [])
        self._store._used[self.user_id] = [t for t in used if t not in drop]


class InMemorySelectionStore:
    '''Process-local selection and ledger store.

    Sessions are serialized through a fixed set of lock stripes picked by
    user id, so one stripe covers every (user, week) selection key as well
    as the user's ledger. Sessions must not nest: two users may share a
    stripe.
    '''

    def __init__(self, lock_stripes: int = LOCK_STRIPES) -> None:
        self._selections: Dict[tuple[str, str], SelectionRecord] = {}
        self._used: Dict[str, list[str]] = {}
        self._locks = tuple(threading.Lock() for _ in range(max(lock_stripes, 1)))

    def _lock_for(self, user_id: str) -> threading.Lock:
        return self._locks[hash(user_id) % len(self._locks)]

    @contextmanager
    def session(self, user_id: str, week_start: datetime) -> Iterator[InMemorySelectionSession]:
        with self._lock_for(user_id):
            yield InMemorySelectionSession(self, user_id, week_start)

    def get_selection(self, user_id: str, week_start: datetime) -> Optional[SelectionRecord]:
        return self._selections.get((user_id, week_key(week_start)))

    def get_used_titles(self, user_id: str) -> list[str]:
        return list(self._used.get(user_id, []))

    def history(self, user_id: str, limit: int = 10) -> list[SelectionRecord]:
        records = [r for (uid, _), r in self._selections.items() if uid == user_id]
        records.sort(key=lambda r: r.week_start, reverse=True)
        return records[:limit]


class InMemoryUnlockBridge:
    '''Records unlocks in a dict; used when no database is configured.'''

    def __init__(self, clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.clock = clock
        self._unlocks: Dict[tuple[str, str], datetime] = {}
        self._lock = threading.Lock()

    def record_unlock(self, user_id: str, achievement: 'AchievementDefinition') -> UnlockRecord:
        key = (user_id, achievement.title)
        with self._lock:
            if key in self._unlocks:
                return UnlockRecord(title=achievement.title, created=False)
            self._unlocks[key] = self.clock()
        return UnlockRecord(title=achievement.title, created=True)

    def unlocks_between(self, user_id: str, start: datetime, end: datetime) -> list[str]:
        return [
            title
            for (uid, title), at in self._unlocks.items()
            if uid == user_id and start <= at <= end
        ]

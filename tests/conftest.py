import contextlib
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator, Optional

import pytest

from gradequest.achievements.catalog import AchievementDefinition
from gradequest.achievements.errors import DataFetchError
from gradequest.achievements.snapshot import (
    ActivityRecord,
    CourseRecord,
    PlatformActivity,
    WeeklySnapshot,
)
from gradequest.achievements.weeks import week_bounds, week_end
from gradequest.utils.constants import TIER_POINTS

# A Monday
MONDAY = datetime(2025, 10, 13, tzinfo=timezone.utc)


@dataclass
class FakeDB:
    fetchone_results: list[Any] = field(default_factory=list)
    fetchall_results: list[Any] = field(default_factory=list)
    executed: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    locks: list[str] = field(default_factory=list)
    last_query: str | None = None
    last_params: tuple[Any, ...] | None = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def fetchone(self, query: str, params=None):
        self.last_query = query
        self.last_params = tuple(params or ())
        if self.fetchone_results:
            return self.fetchone_results.pop(0)

    def fetchall(self, query: str, params=None):
        self.last_query = query
        self.last_params = tuple(params or ())
        if self.fetchall_results:
            return self.fetchall_results.pop(0)
        return []

    def execute(self, query: str, params=None) -> None:
        self.executed.append((query, tuple(params or ())))

    def executemany(self, query: str, param_list) -> None:
        for params in param_list:
            self.executed.append((query, tuple(params)))

    def advisory_lock(self, key: str) -> None:
        self.locks.append(key)


class FakeDBManager:
    def __init__(self, db: FakeDB):
        self._db = db

    def __call__(self):
        return self._db


@contextlib.contextmanager
def patched_dbmanager(monkeypatch, target_module, db: FakeDB) -> Iterator[FakeDB]:
    monkeypatch.setattr(target_module, 'DBManager', FakeDBManager(db))
    yield db


def make_activity(
    id: str = 'a1',
    course_id: str = 'c1',
    type: str = 'assignment',
    score: Optional[float] = None,
    possible: Optional[float] = None,
    status: str = 'completed',
    due_at: Optional[datetime] = None,
    submitted_at: Optional[datetime] = None,
) -> ActivityRecord:
    return ActivityRecord(
        id=id,
        course_id=course_id,
        title=f'Activity {id}',
        type=type,  # type: ignore[arg-type]
        score=score,
        possible_points=possible,
        due_at=due_at,
        submitted_at=submitted_at,
        status=status,  # type: ignore[arg-type]
    )


def graded(*scores: float, possible: float = 100, course_id: str = 'c1') -> list[ActivityRecord]:
    return [
        make_activity(id=f'g{i}', course_id=course_id, score=s, possible=possible)
        for i, s in enumerate(scores)
    ]


def make_snapshot(
    activities=(),
    courses=(),
    previous: Optional[WeeklySnapshot] = None,
    platform: Optional[PlatformActivity] = None,
    week_start: datetime = MONDAY,
) -> WeeklySnapshot:
    return WeeklySnapshot(
        user_id='u1',
        week_start=week_start,
        week_end=week_end(week_start),
        activities=tuple(activities),
        courses=tuple(courses),
        previous_week=previous,
        platform=platform,
    )


def make_course(id: str) -> CourseRecord:
    return CourseRecord(id=id, title=f'Course {id}', code=id.upper())


class FakeProvider:
    '''Serves snapshots by week start; unknown weeks are empty.'''

    def __init__(self, weeks: Optional[dict[datetime, WeeklySnapshot]] = None, fail: bool = False):
        self.weeks = weeks or {}
        self.fail = fail
        self.calls: list[tuple[str, datetime, datetime]] = []

    def get_weekly_snapshot(self, user_id, week_start, week_end_) -> WeeklySnapshot:
        self.calls.append((user_id, week_start, week_end_))
        if self.fail:
            raise DataFetchError('LMS unavailable')
        found = self.weeks.get(week_start)
        if found is not None:
            return found
        return WeeklySnapshot(user_id=user_id, week_start=week_start, week_end=week_end_)


def fixed_clock(moment: datetime = MONDAY + timedelta(days=2, hours=9)):
    return lambda: moment


@pytest.fixture()
def fake_db() -> FakeDB:
    return FakeDB()


@pytest.fixture()
def this_week() -> tuple[datetime, datetime]:
    return week_bounds(MONDAY)


@pytest.fixture()
def clean_registry():
    from gradequest.achievements.registry import registry

    before = list(registry.all())
    registry._rules.clear()  # type: ignore[attr-defined]
    try:
        yield registry
    finally:
        registry._rules.clear()  # type: ignore[attr-defined]
        for r in before:
            registry.register(r)


def make_definition(
    title: str = 'Custom',
    difficulty: str = 'easy',
    category: str = 'threshold',
    calculation_method: str = '',
    rule=None,
):
    return AchievementDefinition(
        title=title,
        description=f'{title} description',
        difficulty=difficulty,  # type: ignore[arg-type]
        category=category,  # type: ignore[arg-type]
        points=TIER_POINTS[difficulty],
        icon='🏅',
        calculation_method=calculation_method,
        rule=rule,
    )
